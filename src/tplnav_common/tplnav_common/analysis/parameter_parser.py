# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Parse the top-level ``parameters:`` declaration block of a template.

Template parameter blocks look like::

    parameters:
      - name: environment
        type: string
        default: dev

A parameter is required exactly when it has no ``default:`` key, which is how
the pipeline runtime treats it.
"""

import re
from typing import List, Optional

from .lines import indent_of, split_lines, strip_trailing_comment, unquote
from .models import Parameter

_PARAMETERS_KEY_RE = re.compile(r"^parameters\s*:")
_NAME_ENTRY_RE = re.compile(r"^(\s*)-\s+name\s*:\s*(.+)$")
_TYPE_PROP_RE = re.compile(r"^\s+type\s*:\s*(.+)$")
_DEFAULT_PROP_RE = re.compile(r"^\s+default\s*:\s*(.*)$")


def _leaves_block(line: str) -> bool:
    """True for a non-blank, non-indented line that is neither a list item nor a comment."""
    return bool(line) and line[0] not in (" ", "\t", "-", "#")


def _scan_properties(lines: List[str], start: int, base_indent: int):
    """Return ``(type, default)`` from the sub-block of the item declared at *start*."""
    param_type = "string"
    default: Optional[str] = None
    prop_indent = -1

    for j in range(start + 1, len(lines)):
        sub = lines[j].rstrip()
        if not sub.strip():
            continue
        sub_indent = indent_of(sub)
        if sub_indent <= base_indent:
            break
        # The first property line fixes the property indent; deeper lines belong
        # to nested values (an object default, a values list) and are ignored.
        if prop_indent == -1:
            prop_indent = sub_indent
        if sub_indent != prop_indent:
            continue

        m = _TYPE_PROP_RE.match(sub)
        if m:
            param_type = unquote(strip_trailing_comment(m.group(1))) or "string"
            continue
        m = _DEFAULT_PROP_RE.match(sub)
        if m:
            default = strip_trailing_comment(m.group(1))

    return param_type, default


def parse_parameters(text: str) -> List[Parameter]:
    """Return the parameters declared in *text*, in declaration order."""
    lines = split_lines(text)
    params: List[Parameter] = []

    in_block = False
    base_indent = -1

    for i, raw in enumerate(lines):
        line = raw.rstrip()

        if not in_block:
            if _PARAMETERS_KEY_RE.match(line):
                in_block = True
            continue

        if _leaves_block(line):
            break

        m = _NAME_ENTRY_RE.match(line)
        if m is None:
            continue

        indent = len(m.group(1))
        if base_indent == -1:
            base_indent = indent
        if indent != base_indent:
            continue

        name = unquote(strip_trailing_comment(m.group(2)))
        if not name:
            continue
        param_type, default = _scan_properties(lines, i, base_indent)
        params.append(Parameter(name=name, type=param_type, default=default, declaration_line=i))

    return params
