#!/usr/bin/env python3

# ceph.py - PVC client function library, Ceph RBD image adapter
# Part of the Parallel Virtual Cluster (PVC) system
#
#    Copyright (C) 2018-2024 Joshua M. Boniface <joshua@boniface.me>
#
#    This program is free software: you can redistribute it and/or modify
#    it under the terms of the GNU General Public License as published by
#    the Free Software Foundation, version 3.
#
#    This program is distributed in the hope that it will be useful,
#    but WITHOUT ANY WARRANTY; without even the implied warranty of
#    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#    GNU General Public License for more details.
#
#    You should have received a copy of the GNU General Public License
#    along with this program.  If not, see <https://www.gnu.org/licenses/>.
#
###############################################################################

from collections import namedtuple

from daemon_lib.lazy_imports import rados, rbd


# Default RBD object order (2^22 = 4 MiB objects)
DEFAULT_IMAGE_ORDER = 22

PoolSummary = namedtuple("PoolSummary", ["name"])
ImageStat = namedtuple("ImageStat", ["size"])


#
# Image handle
#
class CephImage(object):
    """
    A handle on a single RBD image within an IO context

    Creating the handle does not touch the cluster; open() must be called
    before stat(), and remove() works on an unopened handle.
    """

    def __init__(self, ioctx, name):
        self.ioctx = ioctx
        self.name = name
        self.image = None

    def open(self, read_only=True):
        self.image = rbd.Image(self.ioctx, name=self.name, read_only=read_only)

    def close(self):
        if self.image is not None:
            self.image.close()
            self.image = None

    def stat(self):
        if self.image is None:
            raise ValueError(f"Image {self.name} is not open")
        return ImageStat(size=self.image.stat()["size"])

    def remove(self):
        rbd.RBD().remove(self.ioctx, self.name)


#
# IO context
#
class CephIOContext(object):
    def __init__(self, ioctx):
        self.ioctx = ioctx

    def destroy(self):
        self.ioctx.close()

    def list_image_names(self):
        return list(rbd.RBD().list(self.ioctx))

    def open_image(self, name):
        return CephImage(self.ioctx, name)

    def create_image(self, name, size, order=DEFAULT_IMAGE_ORDER):
        rbd.RBD().create(self.ioctx, name, size, order=order)
        return CephImage(self.ioctx, name)


#
# Admin connection
#
class CephAdminConnection(object):
    def __init__(self, cluster):
        self.cluster = cluster

    def shutdown(self):
        self.cluster.shutdown()

    def list_pools(self):
        return [PoolSummary(name=pool) for pool in self.cluster.list_pools()]

    def open_context(self, pool_name):
        return CephIOContext(self.cluster.open_ioctx(pool_name))


#
# Storage client
#
class RadosStorageClient(object):
    """
    Opens administrative connections to the Ceph cluster described by the daemon configuration
    """

    def __init__(self, config):
        self.conffile = config["ceph_config_file"]
        self.keyring = config["ceph_admin_keyring"]
        self.timeout = config.get("ceph_connect_timeout", 5)

    def connect_admin(self):
        cluster = rados.Rados(conffile=self.conffile, conf=dict(keyring=self.keyring))
        try:
            cluster.connect(timeout=self.timeout)
        except Exception:
            cluster.shutdown()
            raise
        return CephAdminConnection(cluster)
