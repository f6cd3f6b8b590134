#!/usr/bin/env python3

# lazy_imports.py - Lazy module importer library
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

import importlib


class LazyModule:
    """
    A proxy for a module that is loaded only when actually used

    The Ceph bindings are shipped by the distribution (python3-rados and
    python3-rbd) and are only present on storage-connected hosts.
    """

    def __init__(self, name):
        self.name = name
        self._module = None

    def load(self, module=None):
        # Allow an already-imported module (or stand-in) to be bound directly
        if module is not None:
            self._module = module
        elif self._module is None:
            self._module = importlib.import_module(self.name)
        return self._module

    def __getattr__(self, attr):
        return getattr(self.load(), attr)


# Create lazy module proxies
rados = LazyModule("rados")
rbd = LazyModule("rbd")
