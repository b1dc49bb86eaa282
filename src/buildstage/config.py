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

import collections.abc
from dataclasses import dataclass, fields
import getpass
import os
from pathlib import Path
from typing import Mapping, Optional

import yaml


DEFAULT_CONFIG_FILE = "buildstage.yaml"

# Conventional directory names, first one that exists wins, else the fallback
IMAGE_DIRS = (("images", "image", "img"), "images")
SOURCE_DIRS = (("sources", "source", "src"), "source")
PACKAGE_DIRS = (("packages", "package", "pkg"), "packages")

DISABLED_VALUES = ("false", "nil")


class ConfigError(RuntimeError):

    def __init__(self, msg):
        super().__init__(msg)


@dataclass(frozen=True)
class Config:
    """Settings for one invocation.

    Every field can come from an environment variable, from a YAML config
    file, or from a default. The environment wins over the file.

    ============  ==============  ==========================================
    field         environment     default
    ============  ==============  ==========================================
    owner         DOCKER_OWNER    USERNAME, then USER, then the login name
    workdir       WORKDIR         current directory
    image_dir     IMG_DIR         first of images/, image/, img/ or images/
    source_dir    SRC_DIR         first of sources/, source/, src/ or source/
    package_dir   PKG_DIR         first of packages/, package/, pkg/ or packages/
    builder       BUILDER         "builder"
    packager      PACKAGER        "packager"
    runtime       RUNTIME         "runtime"
    mkdir         MKDIR           enabled unless "false" or "nil"
    engine        ENGINE          "docker"
    ============  ==============  ==========================================
    """

    owner: str
    workdir: Path
    image_dir: Path
    source_dir: Path
    package_dir: Path
    builder: str = "builder"
    packager: str = "packager"
    runtime: str = "runtime"
    mkdir: bool = True
    engine: str = "docker"

    @classmethod
    def load(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        config_file: Optional[Path] = None,
    ) -> "Config":
        if environ is None:
            environ = os.environ

        workdir = Path(environ.get("WORKDIR") or Path.cwd())

        if config_file is None:
            config_file = workdir / DEFAULT_CONFIG_FILE
            file_values = (
                cls._parse_file(config_file) if config_file.is_file() else {}
            )
        else:
            config_file = Path(config_file)
            file_values = cls._parse_file(config_file)

        if "WORKDIR" not in environ and "workdir" in file_values:
            # Relative to the directory holding the config file
            workdir = config_file.parent / str(file_values["workdir"])

        def value(env_key, file_key, default, raw=False):
            if env_key in environ:
                return environ[env_key]
            if file_key in file_values:
                if raw:
                    return file_values[file_key]
                return str(file_values[file_key])
            return default

        def directory(env_key, file_key, candidates):
            chosen = value(env_key, file_key, None)
            if chosen is None:
                chosen = _first_existing(workdir, candidates)
            chosen = Path(chosen)
            if not chosen.is_absolute():
                chosen = workdir / chosen
            return chosen

        return cls(
            owner=value("DOCKER_OWNER", "owner", None) or _default_owner(environ),
            workdir=workdir,
            image_dir=directory("IMG_DIR", "image_dir", IMAGE_DIRS),
            source_dir=directory("SRC_DIR", "source_dir", SOURCE_DIRS),
            package_dir=directory("PKG_DIR", "package_dir", PACKAGE_DIRS),
            builder=value("BUILDER", "builder", "builder"),
            packager=value("PACKAGER", "packager", "packager"),
            runtime=value("RUNTIME", "runtime", "runtime"),
            mkdir=_enabled(value("MKDIR", "mkdir", None, raw=True)),
            engine=value("ENGINE", "engine", "docker"),
        )

    @classmethod
    def _parse_file(cls, path: Path) -> dict:
        try:
            with open(path, "r") as fin:
                yaml_dict = yaml.safe_load(fin)
        except OSError as e:
            raise ConfigError(f"Cannot read config file '{path}': {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid config file '{path}': {e}") from e
        if yaml_dict is None:
            return {}
        if not isinstance(yaml_dict, collections.abc.Mapping):
            raise ConfigError(f"Config file '{path}' must contain a dictionary")
        known = {f.name for f in fields(cls)}
        for key in yaml_dict.keys():
            if key not in known:
                raise ConfigError(f"Config file '{path}' has unknown key '{key}'")
        return dict(yaml_dict)

    def __str__(self):
        yaml_dict = {}
        for f in fields(self):
            value = getattr(self, f.name)
            yaml_dict[f.name] = str(value) if isinstance(value, Path) else value
        return yaml.dump(yaml_dict, width=float("inf"))


def _first_existing(workdir: Path, candidates) -> str:
    names, fallback = candidates
    for candidate in names:
        if (workdir / candidate).is_dir():
            return candidate
    return fallback


def _enabled(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return True
    return str(value) not in DISABLED_VALUES


def _default_owner(environ) -> str:
    for key in ("USERNAME", "USER"):
        if environ.get(key):
            return environ[key]
    return getpass.getuser()
