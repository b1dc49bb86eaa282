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

import queue
import sys
import threading


class CohesiveOutput:
    """Makes sure output is cohesively streamed.

    If two tasks run at the same time and both want to write to the console,
    all of the output of the task that started first is written before any
    output of the second one. Each block is framed by a begin line and an end
    line carrying the outcome of the task.
    """

    # The currently active output
    output_lock: threading.Lock = threading.Lock()
    has_active_output: bool = False
    output_queue: queue.Queue = queue.Queue()

    def __init__(self, name: str):
        self._name = name
        self._buffer = [f">>> {name} ...\n"]
        self._lock = threading.Lock()
        self._is_active_output = False
        self._exited: bool = False

    @classmethod
    def _join_output_queue(cls, instance):
        with cls.output_lock:
            cls.output_queue.put(instance)
            if not cls.has_active_output:
                cls._next_in_queue()

    @classmethod
    def _next_in_queue(cls):
        while True:
            try:
                next_output = cls.output_queue.get_nowait()
            except queue.Empty:
                return
            with next_output._lock:
                for line in next_output._buffer:
                    sys.stdout.write(line)
                next_output._buffer.clear()
                if not next_output._exited:
                    next_output._is_active_output = True
                    cls.has_active_output = True
                    return

    def write(self, line: str):
        with self._lock:
            if self._is_active_output:
                sys.stdout.write(line)
            else:
                self._buffer.append(line)

    def __enter__(self):
        type(self)._join_output_queue(self)
        return self

    def __exit__(self, t, v, tb):
        status = "done!" if t is None else "failed!"
        self.write(f"<<< {self._name}: {status}\n")
        with type(self).output_lock:
            with self._lock:
                self._exited = True
                was_active = self._is_active_output
                self._is_active_output = False
            if was_active:
                type(self).has_active_output = False
                type(self)._next_in_queue()
