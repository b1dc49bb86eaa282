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

import graphlib
import sys
from typing import Iterable, Optional

from .work import Work, WorkGraph


class GraphError(RuntimeError):

    def __init__(self, msg):
        super().__init__(msg)


class Task(Work):
    """A named node in the task graph.

    A task without an action only groups its prerequisites.
    """

    def __init__(
        self,
        name: str,
        prerequisites: Iterable[str] = (),
        action: Optional[Work] = None,
    ):
        super().__init__()
        self.__name = name
        # dict.fromkeys drops duplicates but keeps order
        self.__prerequisites = tuple(dict.fromkeys(prerequisites))
        self.__action = action

    @property
    def name(self) -> str:
        return self.__name

    @property
    def prerequisites(self) -> tuple[str, ...]:
        return self.__prerequisites

    @property
    def action(self) -> Optional[Work]:
        return self.__action

    def __str__(self):
        return self.__name

    def __repr__(self):
        return f"<Task {self.__name} => {list(self.__prerequisites)}>"

    def __call__(self):
        if self.__action is not None:
            self.__action()

    def dry_run(self):
        if self.__action is None:
            print(f"{self.__name}")
        else:
            print(f"{self.__name}: {self.__action}")


class TaskGraph:
    """Tasks by name, in the order they were defined."""

    def __init__(self):
        self.__tasks: dict[str, Task] = {}

    def add(self, task: Task) -> Task:
        if task.name in self.__tasks:
            raise GraphError(f"Task {task.name} is defined twice")
        self.__tasks[task.name] = task
        return task

    def define(self, name, prerequisites=(), action=None) -> Task:
        return self.add(Task(name, prerequisites, action))

    def __contains__(self, name) -> bool:
        return name in self.__tasks

    def __getitem__(self, name) -> Task:
        return self.__tasks[name]

    def __iter__(self):
        return iter(self.__tasks.values())

    def __len__(self):
        return len(self.__tasks)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self.__tasks.keys())

    def select(self, prefix: str, max_depth: Optional[int] = None) -> tuple[str, ...]:
        """Return names of tasks starting with prefix.

        With max_depth, only names with at most that many colons are kept,
        so ``dockerfile:x`` is selected at depth 1 and ``dockerfile:x:tag``
        is not.
        """
        selected = []
        for name in self.__tasks.keys():
            if not name.startswith(prefix):
                continue
            if max_depth is not None and not 0 <= name.count(":") <= max_depth:
                continue
            selected.append(name)
        return tuple(selected)

    def dangling(self) -> tuple[tuple[str, str], ...]:
        """Return (task, prerequisite) pairs naming undefined tasks."""
        missing = []
        for task in self.__tasks.values():
            for prerequisite in task.prerequisites:
                if prerequisite not in self.__tasks:
                    missing.append((task.name, prerequisite))
        return tuple(missing)

    def validate(self, strict: bool = False) -> None:
        """Raise GraphError on cycles, and on dangling edges if strict."""
        missing = self.dangling()
        if strict and missing:
            edges = ", ".join(f"{t} -> {p}" for t, p in missing)
            raise GraphError(f"Tasks depend on undefined tasks: {edges}")

        ts = graphlib.TopologicalSorter(
            {t.name: self._defined(t.prerequisites) for t in self.__tasks.values()}
        )
        try:
            ts.prepare()
        except graphlib.CycleError as e:
            raise GraphError(f"Dependency cycle: {' -> '.join(e.args[1])}") from e

    def _defined(self, names):
        return [n for n in names if n in self.__tasks]

    def work_graph(self, targets: Iterable[str]) -> WorkGraph:
        """Return the work graph running targets and everything they need.

        Prerequisites naming undefined tasks are left out with a warning.
        """
        work_graph: WorkGraph = {}
        pending = list(targets)
        for target in pending:
            if target not in self.__tasks:
                raise GraphError(f"Don't know how to build task '{target}'")

        warned = set()
        while pending:
            name = pending.pop()
            task = self.__tasks[name]
            if task in work_graph:
                continue
            deps = []
            for prerequisite in task.prerequisites:
                if prerequisite not in self.__tasks:
                    if prerequisite not in warned:
                        warned.add(prerequisite)
                        sys.stderr.write(
                            f"Skipping undefined task {prerequisite} needed by {name}\n"
                        )
                    continue
                deps.append(self.__tasks[prerequisite])
                pending.append(prerequisite)
            work_graph[task] = deps
        return work_graph

    def to_dot(self) -> str:

        def make_str(name: str):
            return name.replace('"', r"\"")

        output = ["digraph task_graph {"]
        for name in self.__tasks.keys():
            output.append(f'  "{make_str(name)}";')
        for task in self.__tasks.values():
            for prerequisite in task.prerequisites:
                style = "" if prerequisite in self.__tasks else " [style=dashed]"
                output.append(
                    f'  "{make_str(task.name)}" -> "{make_str(prerequisite)}"{style};'
                )
        output.append("}")
        return "\n".join(output)
