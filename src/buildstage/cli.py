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

import argparse
import sys

from .config import Config, ConfigError
from .layout import scan
from .pipeline import build_graph
from .tasks import GraphError
from .template import TemplateError
from . import work


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Build sources, package them and assemble runtime images."
    )
    parser.add_argument("--config", default=None)
    parser.add_argument("--dry-run", action="store_true")
    parser.add_argument("--debug", action="store_true")
    parser.add_argument("--tasks", action="store_true")
    parser.add_argument("--strict", action="store_true")
    parser.add_argument("--jobs", type=int, default=1)
    parser.add_argument("targets", nargs="*", default=["default"])

    args = parser.parse_args(argv)
    return args


def main(argv=None):
    args = parse_arguments(argv)

    try:
        config = Config.load(config_file=args.config)
        if args.debug:
            print("-----------------")
            print("- Debug printing config")
            print(config)

        # Discovery must be complete before any task is defined
        catalog = scan(config)
        if args.debug:
            print("-----------------")
            print("- Debug printing catalog")
            print(catalog)

        task_graph = build_graph(catalog, config)
        if args.tasks:
            print("\n".join(task_graph.names))
            return 0

        task_graph.validate(strict=args.strict)
        if args.debug:
            print("-----------------")
            print("- Debug printing task graph")
            print(task_graph.to_dot())
            print("-----------------")

        # Run the requested tasks and everything they depend on
        work_graph = task_graph.work_graph(args.targets)
        work.execute(work_graph, max_workers=args.jobs, dry_run=args.dry_run)
    except (ConfigError, GraphError, TemplateError, work.WorkFailedError) as e:
        sys.stderr.write(f"{e}\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
