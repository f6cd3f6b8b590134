#!/usr/bin/env python3

# Daemon.py - PVC RBD image API daemon
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

import subprocess
from ssl import PROTOCOL_TLS_SERVER, SSLContext, TLSVersion

import daemon_lib.config as cfg
import rbdapid.flaskapi as rbd_api

from daemon_lib.ceph import RadosStorageClient
from daemon_lib.log import Logger

# Daemon version
version = "0.9.100"

# API version
API_VERSION = rbd_api.API_VERSION


##########################################################
# Flask App Creation for Gunicorn
##########################################################


def create_app(config=None):
    """
    Create and return the Flask app, with the configuration, logger and storage client set up once.

    Gunicorn calls this without arguments, so the configuration is loaded here unless given.
    """
    # Get our configuration
    if config is None:
        config = cfg.get_configuration()
    config["daemon_name"] = "rbdapid"
    config["daemon_version"] = version
    cfg.validate_directories(config)

    logger = Logger(config)
    storage = RadosStorageClient(config)

    # Print our startup messages
    print("")
    print("|--------------------------------------------------------------|")
    print("| Parallel Virtual Cluster RBD image API daemon v{0: <13} |".format(version))
    print("| Debug: {0: <53} |".format(str(config["debug"])))
    print("| API version: v{0: <46} |".format(API_VERSION))
    print(
        "| Listen: {0: <52} |".format(
            "{}:{}".format(config["api_listen_address"], config["api_listen_port"])
        )
    )
    print("| SSL: {0: <55} |".format(str(config["api_ssl_enabled"])))
    print("| Authentication: {0: <44} |".format(str(config["api_auth_enabled"])))
    print("| Ceph config: {0: <47} |".format(config["ceph_config_file"]))
    print("|--------------------------------------------------------------|")
    print("")

    logger.out("Starting RBD image API", state="s")

    return rbd_api.create_app(config, logger, storage)


##########################################################
# Entrypoint
##########################################################


def entrypoint():
    config = cfg.get_configuration()

    if config["debug"]:
        app = create_app(config)

        if config["api_ssl_enabled"]:
            ssl_context = SSLContext(PROTOCOL_TLS_SERVER)
            ssl_context.minimum_version = TLSVersion.TLSv1_2
            ssl_context.load_cert_chain(
                config["api_ssl_cert_file"], keyfile=config["api_ssl_key_file"]
            )
        else:
            ssl_context = None

        app.run(
            config["api_listen_address"],
            config["api_listen_port"],
            threaded=True,
            ssl_context=ssl_context,
        )
    else:
        # Build the command to run Gunicorn
        gunicorn_cmd = [
            "gunicorn",
            "--workers",
            "1",
            "--threads",
            "8",
            "--bind",
            "{}:{}".format(config["api_listen_address"], config["api_listen_port"]),
            "rbdapid.Daemon:create_app()",
            "--log-level",
            "info",
            "--access-logfile",
            "-",
            "--error-logfile",
            "-",
        ]

        if config["api_ssl_enabled"]:
            gunicorn_cmd += [
                "--certfile",
                config["api_ssl_cert_file"],
                "--keyfile",
                config["api_ssl_key_file"],
            ]

        # Run Gunicorn
        try:
            subprocess.run(gunicorn_cmd)
        except KeyboardInterrupt:
            exit(0)
        except Exception as e:
            print(e)
            exit(1)
