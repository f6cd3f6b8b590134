#!/usr/bin/env python3

# models.py - RBD API request and response models
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

from pydantic import BaseModel, ConfigDict, Field


class BlockImage(BaseModel):
    """
    A block image as seen on the wire: {"name", "poolName", "size"}

    Missing fields take their zero value; fields of the wrong type fail validation.
    """

    model_config = ConfigDict(strict=True)

    name: str = ""
    pool_name: str = Field(default="", alias="poolName")
    size: int = Field(default=0, ge=0, le=2**64 - 1)

    def missing_fields(self, require_size=True):
        missing = list()
        if not self.name:
            missing.append("name")
        if not self.pool_name:
            missing.append("poolName")
        if require_size and self.size == 0:
            missing.append("size")
        return missing

    def to_json(self):
        return self.model_dump(by_alias=True)
