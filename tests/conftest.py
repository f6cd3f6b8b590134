"""
Pytest configuration and fixtures
"""
import pytest

from collections import Counter

from daemon_lib.ceph import ImageStat, PoolSummary
from daemon_lib.log import Logger
from rbdapid.flaskapi import create_app


class StorageFailure(Exception):
    pass


class FakeImage(object):
    def __init__(self, storage, pool, name):
        self.storage = storage
        self.pool = pool
        self.name = name

    def open(self, read_only=True):
        if ("open", self.pool, self.name) in self.storage.failures:
            raise StorageFailure(f"cannot open {self.name}")
        self.storage.acquired["image"] += 1

    def close(self):
        self.storage.released["image"] += 1

    def stat(self):
        if ("stat", self.pool, self.name) in self.storage.failures:
            raise StorageFailure(f"cannot stat {self.name}")
        return ImageStat(size=self.storage.pools[self.pool][self.name])

    def remove(self):
        if ("remove", self.pool, self.name) in self.storage.failures:
            raise StorageFailure(f"cannot remove {self.name}")
        if self.name not in self.storage.pools[self.pool]:
            raise StorageFailure(f"image {self.name} not found")
        del self.storage.pools[self.pool][self.name]


class FakeIOContext(object):
    def __init__(self, storage, pool):
        self.storage = storage
        self.pool = pool

    def destroy(self):
        self.storage.released["ioctx"] += 1

    def list_image_names(self):
        if ("list_images", self.pool) in self.storage.failures:
            raise StorageFailure(f"cannot list images in {self.pool}")
        return list(self.storage.pools[self.pool])

    def open_image(self, name):
        return FakeImage(self.storage, self.pool, name)

    def create_image(self, name, size, order):
        if ("create", self.pool, name) in self.storage.failures:
            raise StorageFailure(f"cannot create {name}")
        if name in self.storage.pools[self.pool]:
            raise StorageFailure(f"image {name} exists")
        self.storage.created.append((self.pool, name, size, order))
        self.storage.pools[self.pool][name] = size
        return FakeImage(self.storage, self.pool, name)


class FakeConnection(object):
    def __init__(self, storage):
        self.storage = storage

    def shutdown(self):
        self.storage.released["conn"] += 1

    def list_pools(self):
        if ("list_pools",) in self.storage.failures:
            raise StorageFailure("cannot list pools")
        return [PoolSummary(name=pool) for pool in self.storage.pools]

    def open_context(self, pool_name):
        if ("open_context", pool_name) in self.storage.failures:
            raise StorageFailure(f"cannot open {pool_name}")
        if pool_name not in self.storage.pools:
            raise StorageFailure(f"pool {pool_name} not found")
        self.storage.acquired["ioctx"] += 1
        return FakeIOContext(self.storage, pool_name)


class FakeStorage(object):
    """
    In-memory storage client counting every acquire and release
    """

    def __init__(self, pools=None):
        self.pools = pools if pools is not None else dict()
        self.failures = set()
        self.acquired = Counter()
        self.released = Counter()
        self.created = list()
        self.connects = 0

    def fail(self, *key):
        self.failures.add(key)

    def connect_admin(self):
        self.connects += 1
        if ("connect",) in self.failures:
            raise StorageFailure("cannot connect")
        self.acquired["conn"] += 1
        return FakeConnection(self)

    def balanced(self):
        return self.acquired == self.released


@pytest.fixture
def config(tmp_path):
    return {
        "debug": True,
        "file_logging": True,
        "stdout_logging": False,
        "log_colours": False,
        "log_dates": False,
        "log_directory": str(tmp_path),
        "api_auth_enabled": False,
        "api_auth_tokens": list(),
        "ceph_image_order": 22,
    }


@pytest.fixture
def logger(config):
    logger = Logger(config)
    yield logger
    logger.terminate()


@pytest.fixture
def log_lines(config, logger):
    def read():
        with open(config["log_directory"] + "/rbdapid.log") as fh:
            return fh.read().splitlines()

    return read


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def app(config, logger, storage):
    app = create_app(config, logger, storage)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
