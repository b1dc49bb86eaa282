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

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from .config import Config
from . import reference


DOCKERFILE_NAMES = ("Dockerfile", "Dockerfile.erb")


@dataclass(frozen=True)
class Catalog:
    """Source projects and images discovered on disk.

    ``images`` maps an image name to the set of tags that have a Dockerfile,
    and ``contexts`` maps ``(name, tag)`` to the directory holding it.
    """

    sources: tuple[str, ...] = ()
    images: Mapping[str, frozenset[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    contexts: Mapping[tuple[str, str], Path] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def tags(self, img: str) -> frozenset[str]:
        return self.images.get(img, frozenset())

    def context(self, img: str, tag: str) -> Path:
        return self.contexts[(img, tag)]

    def __iter__(self):
        """Yield every (image, tag) pair in a stable order."""
        for img in self.images.keys():
            for tag in sorted(self.images[img]):
                yield img, tag

    def __str__(self):
        lines = [f"source {src}" for src in self.sources]
        for img, tag in self:
            lines.append(f"image {img}:{tag} -> {self.context(img, tag)}")
        return "\n".join(lines)


def _hidden(name: str) -> bool:
    return name.startswith(".")


def discover_sources(source_root: Path) -> tuple[str, ...]:
    if not source_root.is_dir():
        return tuple()
    return tuple(
        sorted(
            p.name
            for p in source_root.iterdir()
            if p.is_dir() and not _hidden(p.name)
        )
    )


def discover_images(image_root: Path):
    """Return (images, contexts) for every Dockerfile under image_root.

    The directory holding a Dockerfile, relative to image_root, is an image
    reference: ``<name>/<tag>/Dockerfile`` or ``<name>/Dockerfile`` for
    ``latest``.
    """
    images: dict[str, set[str]] = {}
    contexts: dict[tuple[str, str], Path] = {}
    if not image_root.is_dir():
        return images, contexts

    dockerfiles = []
    for dockerfile_name in DOCKERFILE_NAMES:
        dockerfiles.extend(image_root.rglob(dockerfile_name))

    for dockerfile in sorted(set(dockerfiles)):
        if not dockerfile.is_file():
            continue
        # Dot directories are skipped, like shell globs do
        parts = dockerfile.relative_to(image_root).parts
        if any(_hidden(part) for part in parts):
            continue
        relative = dockerfile.parent.relative_to(image_root).as_posix()
        if relative == ".":
            # A Dockerfile in the image root names no image
            continue
        img = reference.name(relative)
        tag = reference.tag(relative)
        images.setdefault(img, set()).add(tag)
        contexts.setdefault((img, tag), dockerfile.parent)
    return images, contexts


def bootstrap(config: Config) -> None:
    for directory in (
        config.workdir,
        config.image_dir,
        config.source_dir,
        config.package_dir,
    ):
        directory.mkdir(parents=True, exist_ok=True)


def scan(config: Config) -> Catalog:
    if config.mkdir:
        bootstrap(config)

    images, contexts = discover_images(config.image_dir)
    return Catalog(
        sources=discover_sources(config.source_dir),
        images=MappingProxyType(
            {img: frozenset(images[img]) for img in sorted(images.keys())}
        ),
        contexts=MappingProxyType(dict(sorted(contexts.items()))),
    )
