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

from pathlib import Path

from .work import ExecuteCommand, Work


class Engine:
    """Commands for a docker compatible container engine."""

    def __init__(self, owner: str, workdir: Path, binary: str = "docker"):
        self.__owner = owner
        self.__workdir = Path(workdir)
        self.__binary = binary

    def canonical(self, reference: str) -> str:
        return f"{self.__owner}/{reference}"

    def workpath(self, path) -> Path:
        path = Path(path)
        if path.is_absolute():
            return path
        return self.__workdir / path

    def volume(self, path, mountpoint: str) -> list[str]:
        return ["--volume", f"{self.workpath(path)}:{mountpoint}"]

    def build(self, reference: str, context: Path) -> Work:
        cmd = [
            self.__binary,
            "build",
            "--tag",
            self.canonical(reference),
            str(self.workpath(context)),
        ]
        return ExecuteCommand(cmd, working_directory=self.__workdir)

    def run(self, reference: str, *volumes: list[str]) -> Work:
        cmd = [
            self.__binary,
            "run",
            "--rm",
            "--tty",
        ]
        for volume in volumes:
            cmd.extend(volume)
        cmd.append(self.canonical(reference))
        return ExecuteCommand(cmd, working_directory=self.__workdir)
