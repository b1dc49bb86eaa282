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

from abc import abstractmethod, ABC
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
import shlex
import subprocess
import sys
from threading import Event, Lock
from typing import Callable, Optional, TypeAlias

from .cohesive_output import CohesiveOutput


class Work(ABC):

    @abstractmethod
    def __str__(self) -> str: ...

    @abstractmethod
    def __call__(self) -> None: ...

    def __hash__(self) -> int:
        return str(self).__hash__()

    def dry_run(self) -> None:
        print(str(self))


# WorkGraph is a dictionary where:
#  Key = Work
#  Value = Work that must finish before Key can be started
WorkGraph: TypeAlias = dict[Work, list[Work]]


class WorkFailedError(Exception):

    def __init__(self, what: str):
        super().__init__(f"Failed to execute {what}")
        self.what = what


def execute(graph: WorkGraph, max_workers=1, dry_run=False):
    """Execute the given work graph.

    Each piece of work runs once, after everything it depends on finished.
    The first failure stops scheduling new work and is re-raised once the
    work already running has finished.

    This consumes the given graph and destroys it as work is completed.
    """
    executor = ThreadPoolExecutor(max_workers=max_workers)
    all_done = Event()
    lock = Lock()
    failures: list[BaseException] = []

    if len(graph) == 0:
        all_done.set()

    def shutdown_on_error(f):
        if f.cancelled():
            return
        e = f.exception()
        if e is not None:
            sys.stderr.write(f"{e}\n")
            with lock:
                failures.append(e)
            executor.shutdown(wait=False, cancel_futures=True)
            all_done.set()

    def remove_completed_work(f, done_work: Work):
        if f.cancelled() or f.exception() is not None:
            return
        with lock:
            for deps in graph.values():
                if done_work in deps:
                    deps.remove(done_work)
            if len(graph) == 0:
                all_done.set()

    def queue_next_work():
        future_done_callbacks: list[tuple[Future, tuple[Callable[[Future], None], ...]]] = []
        with lock:
            if failures:
                return
            scheduled: list[Work] = []
            for work, deps in graph.items():
                if len(deps) == 0:
                    try:
                        if dry_run:
                            f = executor.submit(work.dry_run)
                        else:
                            f = executor.submit(work)
                    except RuntimeError:
                        # Executor shutting down, something went wrong
                        return
                    # https://docs.python.org/3/faq/programming.html#why-do-lambdas-defined-in-a-loop-with-different-values-all-return-the-same-result
                    future_done_callbacks.append(
                        (
                            f,
                            (
                                shutdown_on_error,
                                lambda f, work=work: remove_completed_work(f, work),
                                lambda _: queue_next_work(),
                            ),
                        )
                    )
                    scheduled.append(work)
            for work in scheduled:
                # Prevent work getting scheduled multiple times
                del graph[work]

        # Must add done callbacks after iterating over graph because they could modify it
        # Must add done callbacks outside of locking because lock is not reentrant
        for future, done_callbacks in future_done_callbacks:
            for callback in done_callbacks:
                future.add_done_callback(callback)

    queue_next_work()
    all_done.wait()
    executor.shutdown()

    if failures:
        failure = failures[0]
        if isinstance(failure, WorkFailedError):
            raise failure
        raise WorkFailedError(str(failure)) from failure


class ExecuteCommand(Work):

    def __init__(self, cmd: list[str], working_directory: Optional[Path] = None):
        super().__init__()
        self.__cmd = list(cmd)
        if working_directory is None:
            working_directory = Path.cwd()
        self.__working_directory = working_directory

    @property
    def cmd(self) -> tuple[str, ...]:
        return tuple(self.__cmd)

    def __str__(self):
        return shlex.join(self.__cmd)

    def __call__(self):
        with CohesiveOutput(str(self)) as co:
            try:
                process = subprocess.Popen(
                    self.__cmd,
                    cwd=self.__working_directory,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                )
            except OSError as e:
                raise WorkFailedError(f"{self}: {e}") from e
            while line := process.stdout.readline().decode(errors="replace"):
                co.write(line)
            return_code = process.wait()
            if return_code != 0:
                raise WorkFailedError(f"{self} (exit code {return_code})")
