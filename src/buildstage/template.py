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

"""Render Dockerfile templates.

Templates use ERB style tags: ``<%= expr %>`` substitutes a value,
``<% stmt %>`` wraps a statement such as ``if`` or ``for`` and ``<%# ... %>``
is a comment. Statements are Jinja2 statements.
"""

from typing import Any, Mapping

import jinja2


_jinja_env = jinja2.Environment(
    block_start_string="<%",
    block_end_string="%>",
    variable_start_string="<%=",
    variable_end_string="%>",
    comment_start_string="<%#",
    comment_end_string="%>",
    undefined=jinja2.StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)


class TemplateError(ValueError):
    """Raised when a template cannot be rendered."""


def render(template_text: str, variables: Mapping[str, Any]) -> str:
    try:
        template = _jinja_env.from_string(template_text)
        return template.render(**variables)
    except jinja2.exceptions.TemplateError as e:
        raise TemplateError(f"Template error: {e}") from e
