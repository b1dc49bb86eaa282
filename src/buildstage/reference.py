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

"""Split mixed-format image references into name and tag.

References may be written as ``name``, ``name:tag``, ``name/tag`` or any
deeper path such as ``images/name/tag``. Colons are rewritten to slashes so
every form is handled as a path: the last segment is the tag and the segment
before it is the name. A reference without either separator is ``latest``.
"""

import posixpath

LATEST = "latest"


def _normalize(img: str) -> str:
    # One rewrite per colon, so the loop always terminates
    for _ in range(img.count(":")):
        img = img.replace(":", "/", 1)
    return img


def _strip(path: str) -> str:
    stripped = path.rstrip("/")
    return stripped if stripped else path[:1]


def _basename(path: str) -> str:
    path = _strip(path)
    if path == "/":
        return path
    return posixpath.basename(path)


def _dirname(path: str) -> str:
    path = _strip(path)
    if path == "/":
        return path
    parent = posixpath.dirname(path)
    if not parent:
        return "."
    return _strip(parent)


def tag(img: str) -> str:
    img = _normalize(img)
    if "/" in img:
        return _basename(img)
    return LATEST


def name(img: str) -> str:
    img = _normalize(img)
    if "/" in img:
        return _basename(_dirname(img))
    return img


def image(img: str, *extra) -> str:
    """Return ``name:tag`` for img, followed by any extra tokens."""
    tokens = [f"{name(img)}:{tag(img)}"]
    tokens.extend(str(e) for e in extra if e)
    return " ".join(tokens)
