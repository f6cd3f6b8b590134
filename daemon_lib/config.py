#!/usr/bin/env python3

# config.py - Utility functions for rbdapid configuration parsing
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

import os
import yaml

from daemon_lib.ceph import DEFAULT_IMAGE_ORDER


class MalformedConfigurationError(Exception):
    """
    An except when parsing the rbdapid configuration file
    """

    def __init__(self, error=None):
        self.msg = f"ERROR: Configuration file is malformed: {error}"

    def __str__(self):
        return str(self.msg)


def get_configuration_path():
    try:
        _config_file = os.environ["RBDAPI_CONFIG_FILE"]
        if not os.path.exists(_config_file):
            raise FileNotFoundError(_config_file)
        config_file = _config_file
    except Exception:
        print('ERROR: The "RBDAPI_CONFIG_FILE" environment variable must be set.')
        os._exit(1)

    return config_file


def get_parsed_configuration(config_file):
    print('Loading configuration from file "{}"'.format(config_file))

    with open(config_file, "r") as cfgfh:
        try:
            o_config = yaml.load(cfgfh, Loader=yaml.SafeLoader)
        except Exception as e:
            print(f"ERROR: Failed to parse configuration file: {e}")
            os._exit(1)

    config = dict()

    try:
        o_path = o_config["path"]
        config_path = {
            "log_directory": o_path["system_log_directory"],
            "ceph_directory": o_path["ceph_directory"],
        }
        config = {**config, **config_path}

        o_logging = o_config["logging"]
        config_logging = {
            "debug": o_logging.get("debug_logging", False),
            "file_logging": o_logging.get("file_logging", False),
            "stdout_logging": o_logging.get("stdout_logging", False),
            "log_colours": o_logging.get("log_colours", False),
            "log_dates": o_logging.get("log_dates", False),
        }
        config = {**config, **config_logging}

        o_ceph = o_config["ceph"]
        config_ceph = {
            "ceph_config_file": config["ceph_directory"]
            + "/"
            + o_ceph["ceph_config_file"],
            "ceph_admin_keyring": config["ceph_directory"]
            + "/"
            + o_ceph["ceph_keyring_file"],
            "ceph_connect_timeout": int(o_ceph.get("connect_timeout", 5)),
            "ceph_image_order": int(o_ceph.get("image_order", DEFAULT_IMAGE_ORDER)),
        }
        config = {**config, **config_ceph}

        o_api = o_config["api"]

        o_api_listen = o_api["listen"]
        config_api_listen = {
            "api_listen_address": o_api_listen["address"],
            "api_listen_port": o_api_listen["port"],
        }
        config = {**config, **config_api_listen}

        o_api_authentication = o_api.get("authentication", dict())
        config_api_authentication = {
            "api_auth_enabled": o_api_authentication.get("enabled", False),
            "api_auth_source": o_api_authentication.get("source", "token"),
        }
        config = {**config, **config_api_authentication}

        o_api_ssl = o_api.get("ssl", dict())
        config_api_ssl = {
            "api_ssl_enabled": o_api_ssl.get("enabled", False),
            "api_ssl_cert_file": o_api_ssl.get("certificate", None),
            "api_ssl_key_file": o_api_ssl.get("private_key", None),
        }
        config = {**config, **config_api_ssl}

        # Set up our token list if specified
        if config["api_auth_source"] == "token":
            config["api_auth_tokens"] = o_api.get("token", None) or list()
        else:
            config["api_auth_tokens"] = list()
            if config["api_auth_enabled"]:
                print(
                    "WARNING: No authentication method provided; disabling API authentication."
                )
                config["api_auth_enabled"] = False

    except Exception as e:
        raise MalformedConfigurationError(e)

    return config


def get_configuration():
    """
    Get the configuration.
    """
    rbdapi_config_file = get_configuration_path()
    config = get_parsed_configuration(rbdapi_config_file)
    return config


def validate_directories(config):
    if config["file_logging"] and not os.path.exists(config["log_directory"]):
        os.makedirs(config["log_directory"])
