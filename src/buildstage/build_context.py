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

import os
from pathlib import Path
import shutil

from .cohesive_output import CohesiveOutput
from .template import render
from .work import Work


class RenderDockerfile(Work):
    """Regenerate a Dockerfile from the Dockerfile.erb next to it, if any."""

    def __init__(self, dockerfile: Path, variables: dict[str, str]):
        super().__init__()
        self.__dockerfile = Path(dockerfile)
        self.__variables = dict(variables)

    @property
    def template(self) -> Path:
        return self.__dockerfile.with_name(self.__dockerfile.name + ".erb")

    def __str__(self):
        return f"render {self.template} > {self.__dockerfile}"

    def __call__(self):
        if not self.template.is_file():
            return
        with CohesiveOutput(f"Regenerating {self.__dockerfile}"):
            text = self.template.read_text()
            self.__dockerfile.write_text(render(text, self.__variables))


class LinkPackage(Work):
    """Hard link the package directory into a build context as ``pkg``.

    Directories can't be hard linked, so the tree is recreated and each file
    in it is hard linked.
    """

    def __init__(self, package_dir: Path, context: Path):
        super().__init__()
        self.__package_dir = Path(package_dir)
        self.__target = Path(context) / "pkg"

    @property
    def target(self) -> Path:
        return self.__target

    def __str__(self):
        return f"link {self.__package_dir} > {self.__target}"

    def __call__(self):
        with CohesiveOutput(f"Linking {self.__package_dir} into {self.__target}"):
            if self.__target.is_symlink() or self.__target.is_file():
                self.__target.unlink()
            elif self.__target.exists():
                shutil.rmtree(self.__target)
            shutil.copytree(
                self.__package_dir,
                self.__target,
                symlinks=True,
                copy_function=os.link,
            )
