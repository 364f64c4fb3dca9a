# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Repository aliases declared under ``resources.repositories``.

Example::

    resources:
      repositories:
        - repository: templates
          name: myorg/template-repo-name
          type: git

yields ``{"templates": "template-repo-name"}``.
"""

import re
from typing import Dict, Optional

from .lines import indent_of, split_lines, strip_trailing_comment, unquote

_RESOURCES_KEY_RE = re.compile(r"^resources\s*:")
_REPOSITORIES_KEY_RE = re.compile(r"^\s+repositories\s*:")
_REPO_ENTRY_RE = re.compile(r"^(\s*)-\s+repository\s*:\s*(.+)$")
_NAME_PROP_RE = re.compile(r"^\s+name\s*:\s*(.+)$")


def _clean(value: str) -> str:
    return unquote(strip_trailing_comment(value)).strip()


def parse_repository_aliases(text: str) -> Dict[str, str]:
    """Return a mapping of alias to repository folder name (last ``/`` segment of ``name``)."""
    aliases: Dict[str, str] = {}

    in_resources = False
    in_repositories = False
    repo_indent = -1
    current_alias: Optional[str] = None

    for line in split_lines(text):
        line = line.rstrip()
        stripped = line.lstrip()

        if not in_resources:
            if _RESOURCES_KEY_RE.match(line):
                in_resources = True
            continue

        if not stripped or stripped.startswith("#"):
            continue
        # Another top-level key closes the resources block.
        if indent_of(line) == 0:
            break

        if not in_repositories:
            if _REPOSITORIES_KEY_RE.match(line):
                in_repositories = True
            continue

        indent = indent_of(line)
        m = _REPO_ENTRY_RE.match(line)
        if m:
            entry_indent = len(m.group(1))
            if repo_indent == -1:
                repo_indent = entry_indent
            if entry_indent < repo_indent:
                break
            if entry_indent == repo_indent:
                current_alias = _clean(m.group(2)) or None
            continue

        if repo_indent != -1 and indent <= repo_indent:
            # A sibling key of ``repositories:`` (e.g. ``pipelines:``) ends the list.
            if indent < repo_indent or not stripped.startswith("-"):
                break
            current_alias = None
            continue

        if current_alias is not None:
            m = _NAME_PROP_RE.match(line)
            if m:
                full_name = _clean(m.group(1))
                if full_name:
                    aliases[current_alias] = full_name.split("/")[-1]

    return aliases
