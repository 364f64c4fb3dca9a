# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Top-level ``variables:`` block, in map form or list form.

Map form::

    variables:
      buildConfiguration: Release

List form::

    variables:
      - name: buildConfiguration
        value: Release
      - group: my-variable-group

The form is fixed by the first content line under ``variables:``.
"""

import re
from typing import Dict, List, Optional

from .lines import indent_of, split_lines, strip_trailing_comment
from .models import ParsedVariables, PipelineVariable, VariableGroup

_VARIABLES_KEY_RE = re.compile(r"^variables\s*:")
_MAP_ENTRY_RE = re.compile(r"^(\s*)(\w[\w.-]*)\s*:\s*(.*)$")
_GROUP_ENTRY_RE = re.compile(r"^\s*-\s+group\s*:\s*(.+)$")
_NAME_ENTRY_RE = re.compile(r"^\s*-\s+name\s*:\s*(.+)$")
_VALUE_PROP_RE = re.compile(r"^\s+value\s*:\s*(.*)$")


def parse_variables(text: str) -> ParsedVariables:
    variables: Dict[str, PipelineVariable] = {}
    groups: List[VariableGroup] = []

    in_block = False
    base_indent = -1
    is_list: Optional[bool] = None
    current_name: Optional[str] = None
    current_line = -1

    for i, line in enumerate(split_lines(text)):
        line = line.rstrip()
        stripped = line.lstrip()

        if not in_block:
            if _VARIABLES_KEY_RE.match(line):
                in_block = True
            continue

        if not stripped or stripped.startswith("#"):
            continue
        indent = indent_of(line)
        if indent == 0 and not stripped.startswith("-"):
            break

        if is_list is None:
            is_list = stripped.startswith("-")
            base_indent = indent

        if not is_list:
            if indent != base_indent:
                continue
            m = _MAP_ENTRY_RE.match(line)
            if m:
                name = m.group(2)
                variables[name] = PipelineVariable(
                    name=name, value=strip_trailing_comment(m.group(3)), line_number=i
                )
            continue

        if indent == base_indent:
            m = _GROUP_ENTRY_RE.match(line)
            if m:
                groups.append(VariableGroup(name=strip_trailing_comment(m.group(1)), line_number=i))
                current_name = None
                continue
            m = _NAME_ENTRY_RE.match(line)
            if m:
                current_name = strip_trailing_comment(m.group(1))
                current_line = i
                continue
            # Any other list item (e.g. a ``- template:`` include) ends the current variable.
            current_name = None
            continue

        if current_name is not None and indent > base_indent:
            m = _VALUE_PROP_RE.match(line)
            if m:
                variables[current_name] = PipelineVariable(
                    name=current_name, value=strip_trailing_comment(m.group(1)), line_number=current_line
                )
                current_name = None

    return ParsedVariables(variables=variables, groups=groups)
