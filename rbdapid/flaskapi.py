#!/usr/bin/env python3

# flaskapi.py - RBD image HTTP API resources
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

import flask

from functools import wraps
from flask_restful import Resource, Api

from daemon_lib.ceph import DEFAULT_IMAGE_ORDER

import rbdapid.helper as api_helper


API_VERSION = 1.0


# Authentication decorator function
def Authenticator(function):
    @wraps(function)
    def authenticate(*args, **kwargs):
        config = flask.current_app.config
        # No authentication required
        if not config["API_AUTH_ENABLED"]:
            return function(*args, **kwargs)
        # Key header-based authentication
        if "X-Api-Key" in flask.request.headers:
            if any(
                token
                for token in config["API_AUTH_TOKENS"]
                if flask.request.headers.get("X-Api-Key") == token.get("token")
            ):
                return function(*args, **kwargs)
            else:
                return {"message": "X-Api-Key Authentication failed."}, 401
        # All authentications failed
        return {"message": "X-Api-Key Authentication required."}, 401

    return authenticate


def make_response(retdata, retcode):
    """
    Turn a helper (retdata, retcode) pair into a Flask response

    Failures carry only the status code; text results are sent as text/plain.
    """
    if retcode != 200:
        return flask.Response(status=retcode)
    if isinstance(retdata, str):
        return flask.Response(retdata, status=retcode, mimetype="text/plain")
    response = flask.jsonify(retdata)
    response.status_code = retcode
    return response


class ImageResource(Resource):
    def __init__(self, storage, logger, image_order=DEFAULT_IMAGE_ORDER):
        self.storage = storage
        self.logger = logger
        self.image_order = image_order


##########################################################
# API Root
##########################################################


# /
class API_Root(Resource):
    def get(self):
        """
        Return the RBD API version string
        ---
        tags:
          - root
        responses:
          200:
            description: OK
            schema:
              type: object
              id: API-Version
              properties:
                message:
                  type: string
                  description: A text message
                  example: "RBD API version 1.0"
        """
        return {"message": "RBD API version {}".format(API_VERSION)}


##########################################################
# Block images
##########################################################


# /image
class API_Image_Root(ImageResource):
    @Authenticator
    def get(self):
        """
        Return a list of block images in all pools of the cluster
        ---
        tags:
          - image
        definitions:
          - schema:
              type: object
              id: image
              properties:
                name:
                  type: string
                  description: The name of the image
                poolName:
                  type: string
                  description: The name of the pool containing the image
                size:
                  type: integer
                  description: The size of the image in bytes
        responses:
          200:
            description: OK
            schema:
              type: array
              items:
                $ref: '#/definitions/image'
          500:
            description: Storage cluster error
        """
        return make_response(*api_helper.image_list(self.storage, self.logger))

    @Authenticator
    def post(self):
        """
        Create a new block image
        ---
        tags:
          - image
        parameters:
          - in: body
            name: image
            required: true
            schema:
              $ref: '#/definitions/image'
        responses:
          200:
            description: OK
            schema:
              type: string
              example: "succeeded created image img1"
          400:
            description: Bad request
          500:
            description: Storage cluster error
        """
        return make_response(
            *api_helper.image_create(
                self.storage, self.logger, flask.request, order=self.image_order
            )
        )


# /image/remove
class API_Image_Remove(ImageResource):
    @Authenticator
    def post(self):
        """
        Remove a block image; only name and poolName are used
        ---
        tags:
          - image
        parameters:
          - in: body
            name: image
            required: true
            schema:
              $ref: '#/definitions/image'
        responses:
          200:
            description: OK
            schema:
              type: string
              example: "succeeded deleting image img1"
          400:
            description: Bad request
          500:
            description: Storage cluster error
        """
        return make_response(
            *api_helper.image_remove(self.storage, self.logger, flask.request)
        )


##########################################################
# Flask App Creation
##########################################################


def create_app(config, logger, storage):
    """
    Create the Flask app with its resources bound to the given logger and storage client
    """
    app = flask.Flask(__name__)

    app.config["DEBUG"] = bool(config.get("debug", False))
    app.config["API_AUTH_ENABLED"] = bool(config.get("api_auth_enabled", False))
    app.config["API_AUTH_TOKENS"] = config.get("api_auth_tokens", list())

    resource_kwargs = {
        "storage": storage,
        "logger": logger,
        "image_order": config.get("ceph_image_order", DEFAULT_IMAGE_ORDER),
    }

    api = Api(app)
    api.add_resource(API_Root, "/")
    api.add_resource(
        API_Image_Root, "/image", resource_class_kwargs=resource_kwargs
    )
    api.add_resource(
        API_Image_Remove, "/image/remove", resource_class_kwargs=resource_kwargs
    )

    return app
