#!/usr/bin/env python3

# helper.py - PVC HTTP API helper functions, RBD image operations
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

from contextlib import contextmanager

from pydantic import ValidationError

from daemon_lib.ceph import DEFAULT_IMAGE_ORDER
from rbdapid.models import BlockImage


#
# Exceptions
#
class ClientInputError(Exception):
    """
    The request body was malformed or missing required fields (HTTP 400)
    """

    retcode = 400


class AdapterError(Exception):
    """
    A storage cluster operation failed (HTTP 500)
    """

    retcode = 500


#
# Resource helpers (as context managers)
#
@contextmanager
def open_admin(storage, logger, operation):
    """
    Open an administrative connection to the storage cluster, shut down on exit
    """
    try:
        conn = storage.connect_admin()
    except Exception as e:
        logger.out(
            f"Failed to connect to the storage cluster: {e}",
            state="e",
            prefix=operation,
        )
        raise AdapterError(e)

    try:
        yield conn
    finally:
        conn.shutdown()


@contextmanager
def open_pool(conn, logger, operation, pool):
    """
    Open an IO context on pool, destroyed on exit
    """
    try:
        ioctx = conn.open_context(pool)
    except Exception as e:
        logger.out(
            f"Failed to open IO context for pool {pool}: {e}",
            state="e",
            prefix=operation,
        )
        raise AdapterError(e)

    try:
        yield ioctx
    finally:
        ioctx.destroy()


@contextmanager
def open_image(ioctx, logger, operation, pool, name, read_only=True):
    """
    Open image name in ioctx, closed on exit
    """
    image = ioctx.open_image(name)
    try:
        image.open(read_only)
    except Exception as e:
        logger.out(
            f"Failed to open image {name} from pool {pool}: {e}",
            state="e",
            prefix=operation,
        )
        raise AdapterError(e)

    try:
        yield image
    finally:
        image.close()


def read_body(request, logger, operation):
    try:
        return request.get_data(cache=False)
    except Exception as e:
        logger.out(f"Failed to read request body: {e}", state="e", prefix=operation)
        raise AdapterError(e)


def parse_image_request(body, logger, operation, require_size=True):
    """
    Decode a request body into a BlockImage and check its required fields
    """
    try:
        image = BlockImage.model_validate_json(body)
    except ValidationError as e:
        logger.out(
            f"Failed to unmarshal request body '{body.decode('utf8', 'replace')}': {e.errors(include_url=False)}",
            state="e",
            prefix=operation,
        )
        raise ClientInputError(e)

    missing = image.missing_fields(require_size=require_size)
    if missing:
        logger.out(
            f"Image missing required fields {missing}: {image.to_json()}",
            state="e",
            prefix=operation,
        )
        raise ClientInputError(f"Missing fields: {', '.join(missing)}")

    return image


#
# Image functions
#
def get_images_for_pool(ioctx, logger, pool):
    """
    Return the BlockImage list for every image in an open pool context
    """
    try:
        image_names = ioctx.list_image_names()
    except Exception as e:
        logger.out(
            f"Failed to get image names from pool {pool}: {e}",
            state="e",
            prefix="list images",
        )
        raise AdapterError(e)

    images = list()
    for name in image_names:
        with open_image(ioctx, logger, "list images", pool, name) as image:
            try:
                image_stat = image.stat()
            except Exception as e:
                logger.out(
                    f"Failed to stat image {name} from pool {pool}: {e}",
                    state="e",
                    prefix="list images",
                )
                raise AdapterError(e)

        images.append(BlockImage(name=name, poolName=pool, size=image_stat.size))

    return images


def image_list(storage, logger):
    """
    Get the list of RBD images across all pools in the storage cluster.
    """
    try:
        with open_admin(storage, logger, "list images") as conn:
            try:
                pools = conn.list_pools()
            except Exception as e:
                logger.out(f"Failed to list pools: {e}", state="e", prefix="list images")
                raise AdapterError(e)

            result = list()
            for pool in pools:
                with open_pool(conn, logger, "list images", pool.name) as ioctx:
                    result.extend(get_images_for_pool(ioctx, logger, pool.name))
    except AdapterError as e:
        return None, e.retcode

    logger.out(
        f"Listed {len(result)} images in {len(pools)} pools",
        state="d",
        prefix="list images",
    )
    return [image.to_json() for image in result], 200


def image_create(storage, logger, request, order=DEFAULT_IMAGE_ORDER):
    """
    Create a new RBD image from the request body.
    """
    try:
        body = read_body(request, logger, "create image")
        new_image = parse_image_request(body, logger, "create image")

        with open_admin(storage, logger, "create image") as conn:
            with open_pool(conn, logger, "create image", new_image.pool_name) as ioctx:
                try:
                    created_image = ioctx.create_image(
                        new_image.name, new_image.size, order
                    )
                except Exception as e:
                    logger.out(
                        f"Failed to create image {new_image.to_json()}: {e}",
                        state="e",
                        prefix="create image",
                    )
                    raise AdapterError(e)
    except (ClientInputError, AdapterError) as e:
        return None, e.retcode

    logger.out(
        f"Created image {created_image.name} in pool {new_image.pool_name}",
        state="o",
        prefix="create image",
    )
    return "succeeded created image {}".format(created_image.name), 200


def image_remove(storage, logger, request):
    """
    Remove an RBD image named by the request body.
    """
    try:
        body = read_body(request, logger, "delete image")
        delete_image_req = parse_image_request(
            body, logger, "delete image", require_size=False
        )

        with open_admin(storage, logger, "delete image") as conn:
            with open_pool(
                conn, logger, "delete image", delete_image_req.pool_name
            ) as ioctx:
                delete_image = ioctx.open_image(delete_image_req.name)
                try:
                    delete_image.remove()
                except Exception as e:
                    logger.out(
                        f"Failed to delete image {delete_image_req.to_json()}: {e}",
                        state="e",
                        prefix="delete image",
                    )
                    raise AdapterError(e)
    except (ClientInputError, AdapterError) as e:
        return None, e.retcode

    logger.out(
        f"Deleted image {delete_image_req.name} from pool {delete_image_req.pool_name}",
        state="o",
        prefix="delete image",
    )
    return "succeeded deleting image {}".format(delete_image_req.name), 200
