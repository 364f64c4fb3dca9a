# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Arguments passed to a template at one call-site.

Given the document lines and the index of a ``- template:`` line, the
``parameters:`` sub-block under it is scanned for ``name: value`` entries.
Entries nested one level inside ``${{ if }}`` / ``${{ elseif }}`` /
``${{ else }}`` lines are arguments too; the conditional lines are not.

An entry with an empty value carries a multi-line object, and one whose value is
a block scalar indicator (``|``, ``>-``, ...) carries multi-line text. Either is
recorded once with its raw value and its body is skipped, so nested lines are
never mistaken for sibling arguments.
"""

import re
from typing import Dict, Iterator, List, Tuple

from .lines import check_line_index, indent_of, strip_trailing_comment
from .models import PassedArgument

_PARAMETERS_KEY_RE = re.compile(r"^\s+parameters\s*:")
_PARAM_ENTRY_RE = re.compile(r"^(\s+)([\w-]+)\s*:\s*(.*)$")
_CONDITIONAL_LINE_RE = re.compile(r"^\s*\$\{\{\s*(?:if|elseif|else)\b.*\}\}\s*:")
_EACH_PASSTHROUGH_RE = re.compile(r"\$\{\{\s*each\s+\w+\s+in\s+parameters\s*\}\}\s*:")
# Block scalar indicators: |, >, with optional chomping and indentation.
_BLOCK_SCALAR_RE = re.compile(r"^[|>][+-]?\d*$")


def _block_lines(lines: List[str], inclusion_line: int) -> Iterator[Tuple[int, str, int]]:
    """Yield ``(index, line, indent)`` for the non-blank lines of the call-site
    ``parameters:`` block, without the ``parameters:`` line itself."""
    check_line_index(lines, inclusion_line)
    template_indent = indent_of(lines[inclusion_line])
    params_indent = -1

    for i in range(inclusion_line + 1, len(lines)):
        line = lines[i].rstrip()
        if not line.strip():
            continue
        indent = indent_of(line)
        if indent <= template_indent:
            return

        if params_indent == -1:
            if _PARAMETERS_KEY_RE.match(line):
                params_indent = indent
            continue

        if indent <= params_indent:
            return
        yield i, line, indent


def parse_passed_arguments(lines: List[str], inclusion_line: int) -> Dict[str, PassedArgument]:
    """Return the arguments passed at the call-site on *inclusion_line*, keyed by name.

    The first occurrence of a name wins, so alternative conditional branches do
    not override each other.

    Raises ``ValueError`` when *inclusion_line* is not a valid index into *lines*.
    """
    passed: Dict[str, PassedArgument] = {}
    # Indent of the multi-line entry whose body is being skipped, or -1.
    object_depth = -1

    for i, line, indent in _block_lines(lines, inclusion_line):
        if object_depth >= 0:
            if indent > object_depth:
                continue
            if indent == object_depth and line.lstrip().startswith("-"):
                # Sequence item belonging to the object-valued entry.
                continue
            object_depth = -1

        if _CONDITIONAL_LINE_RE.match(line):
            continue

        m = _PARAM_ENTRY_RE.match(line)
        if m is None:
            continue

        name = m.group(2)
        value = m.group(3).strip()
        if name not in passed:
            passed[name] = PassedArgument(name=name, value=value, line_number=i)
        if not value or _BLOCK_SCALAR_RE.match(strip_trailing_comment(value)):
            object_depth = len(m.group(1))

    return passed


def has_parameters_passthrough(lines: List[str], inclusion_line: int) -> bool:
    """True when the call-site forwards every parameter with ``${{ each p in parameters }}:``."""
    return any(_EACH_PASSTHROUGH_RE.search(line) for _, line, _ in _block_lines(lines, inclusion_line))


def find_insertion_line(lines: List[str], inclusion_line: int):
    """Return the line after which a new argument would be appended.

    That is the last line of the call-site ``parameters:`` block, the
    ``parameters:`` line itself when the block is empty, or ``None`` when the
    call-site has no ``parameters:`` block.
    """
    check_line_index(lines, inclusion_line)
    template_indent = indent_of(lines[inclusion_line])
    params_line = None
    last_line = None

    for i in range(inclusion_line + 1, len(lines)):
        line = lines[i].rstrip()
        if not line.strip():
            continue
        indent = indent_of(line)
        if indent <= template_indent:
            break
        if params_line is None:
            if _PARAMETERS_KEY_RE.match(line):
                params_line = i
            continue
        if indent <= indent_of(lines[params_line]):
            break
        last_line = i

    return last_line if last_line is not None else params_line
