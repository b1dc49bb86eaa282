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

"""Derive the task graph for a catalog of sources and images.

Every image tag gets a ``dockerfile:``, ``link:`` and ``image:`` task, every
source project a ``build:`` and ``package:`` task. Aggregate tasks group
them for the command line.
"""

from typing import Optional

from .config import Config
from .engine import Engine
from .build_context import LinkPackage, RenderDockerfile
from .layout import Catalog
from .reference import LATEST
from .roles import RoleResolver
from .tasks import TaskGraph


SOURCE_MOUNT = "/src"
PACKAGE_MOUNT = "/pkg"


def build_graph(
    catalog: Catalog, config: Config, engine: Optional[Engine] = None
) -> TaskGraph:
    if engine is None:
        engine = Engine(config.owner, config.workdir, config.engine)
    roles = RoleResolver(catalog, config)
    graph = TaskGraph()

    add_dockerfile_tasks(graph, catalog, config)
    add_link_tasks(graph, catalog, config)
    add_image_tasks(graph, catalog, config, engine)
    add_build_tasks(graph, catalog, config, roles, engine)
    add_package_tasks(graph, catalog, config, roles, engine)
    add_aggregates(graph)
    return graph


def add_dockerfile_tasks(graph: TaskGraph, catalog: Catalog, config: Config):
    for img, tags in catalog.images.items():
        for tag in sorted(tags):
            dockerfile = catalog.context(img, tag) / "Dockerfile"
            graph.define(
                f"dockerfile:{img}:{tag}",
                action=RenderDockerfile(dockerfile, {"namespace": config.owner}),
            )
        graph.define(
            f"dockerfile:{img}", [f"dockerfile:{img}:{t}" for t in sorted(tags)]
        )


def add_link_tasks(graph: TaskGraph, catalog: Catalog, config: Config):
    for img, tags in catalog.images.items():
        for tag in sorted(tags):
            graph.define(
                f"link:{img}:{tag}",
                action=LinkPackage(config.package_dir, catalog.context(img, tag)),
            )
        graph.define(f"link:{img}", [f"link:{img}:{t}" for t in sorted(tags)])


def image_prerequisites(img: str, tag: str, config: Config) -> list[str]:
    dependencies = [f"dockerfile:{img}:{tag}"]
    if tag == config.packager:
        # Packager images build on top of the builder image
        dependencies.append(f"image:{img}:{config.builder}")
    elif tag == LATEST:
        dependencies.append(f"package:{img}")
        dependencies.append(f"link:{img}:{tag}")
        dependencies.append(f"image:{img}:{config.runtime}")
    return dependencies


def add_image_tasks(graph: TaskGraph, catalog: Catalog, config: Config, engine: Engine):
    for img, tags in catalog.images.items():
        for tag in sorted(tags):
            graph.define(
                f"image:{img}:{tag}",
                image_prerequisites(img, tag, config),
                action=engine.build(f"{img}:{tag}", catalog.context(img, tag)),
            )
        graph.define(f"image:{img}", [f"image:{img}:{t}" for t in sorted(tags)])


def add_build_tasks(
    graph: TaskGraph,
    catalog: Catalog,
    config: Config,
    roles: RoleResolver,
    engine: Engine,
):
    for src in catalog.sources:
        # Only depend on a builder image that really exists, not a fallback
        dependencies = []
        if roles.has_builder(src):
            dependencies.append(f"image:{src}:{config.builder}")
        graph.define(
            f"build:{src}",
            dependencies,
            action=engine.run(
                roles.reference(src, roles.builder(src)),
                engine.volume(config.source_dir / src, SOURCE_MOUNT),
            ),
        )


def add_package_tasks(
    graph: TaskGraph,
    catalog: Catalog,
    config: Config,
    roles: RoleResolver,
    engine: Engine,
):
    for src in catalog.sources:
        dependencies = []
        if f"build:{src}" in graph:
            dependencies.append(f"build:{src}")
        if roles.has_packager(src):
            dependencies.append(f"image:{src}:{config.packager}")
        graph.define(
            f"package:{src}",
            dependencies,
            action=engine.run(
                roles.reference(src, roles.packager(src)),
                engine.volume(config.source_dir / src, SOURCE_MOUNT),
                engine.volume(config.package_dir, PACKAGE_MOUNT),
            ),
        )


AGGREGATES = (
    # (name, prefix, max depth)
    ("build", "build:", None),
    ("images", "image:", None),
    ("packages", "package:", None),
    ("dockerfiles", "dockerfile:", 1),
    ("links", "link:", 1),
)


def add_aggregates(graph: TaskGraph):
    """Define the umbrella tasks over everything defined so far."""
    for name, prefix, max_depth in AGGREGATES:
        graph.define(name, graph.select(prefix, max_depth))
    graph.define("all", ["images", "build", "packages"])
    graph.define("default", ["all"])
