# Copyright 2024 Shane Loretz.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from .config import Config
from .layout import Catalog
from . import reference


class RoleResolver:
    """Pick the tag of an image that fills the builder, packager or runtime role.

    A missing role falls back to a more basic one: packager to builder,
    builder to runtime, and runtime to the full reference ``<img>:latest``.
    """

    def __init__(self, catalog: Catalog, config: Config):
        self.__catalog = catalog
        self.__config = config

    def tags(self, img: str) -> frozenset[str]:
        return self.__catalog.tags(img)

    def runtime(self, img: str) -> str:
        if self.__config.runtime in self.tags(img):
            return self.__config.runtime
        return f"{img}:{reference.LATEST}"

    def builder(self, img: str) -> str:
        if self.has_builder(img):
            return self.__config.builder
        return self.runtime(img)

    def packager(self, img: str) -> str:
        if self.has_packager(img):
            return self.__config.packager
        return self.builder(img)

    def has_builder(self, img: str) -> bool:
        return self.__config.builder in self.tags(img)

    def has_packager(self, img: str) -> bool:
        return self.__config.packager in self.tags(img)

    def reference(self, img: str, role_value: str) -> str:
        # "x:latest" fallbacks and plain tags both normalize to "<img>:<tag>"
        return reference.image(f"{img}:{role_value}")
