# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Resolve ``template:`` references to absolute file paths.

Path rules:

- ``path@alias``: another repository, checked out as a sibling of this one,
  so the result is ``{parent of repo root}/{repository folder}/{path}``
- ``path@self``: the current repository, resolved like a plain path
- ``/path``: relative to the repository root (the nearest ``.git`` ancestor)
- ``path``: relative to the including file's directory

Apart from the ``.git`` lookup this is pure path algebra; callers decide
whether the result exists.
"""

import os
from typing import Dict, Optional

from .models import ResolvedReference

SELF_ALIAS = "self"


def find_repo_root(start_dir: str) -> str:
    """Return the nearest ancestor of *start_dir* holding ``.git``, or *start_dir* itself."""
    start_dir = os.path.abspath(start_dir)
    current = start_dir
    while True:
        if os.path.exists(os.path.join(current, ".git")):
            return current
        parent = os.path.dirname(current)
        if parent == current:
            return start_dir
        current = parent


def _normalize(path: str) -> str:
    return os.path.normpath(os.path.abspath(path))


def _resolve_local(path: str, including_file: str) -> ResolvedReference:
    file_dir = os.path.dirname(os.path.abspath(including_file))
    if path.startswith("/"):
        repo_root = find_repo_root(file_dir)
        return ResolvedReference(absolute_path=_normalize(os.path.join(repo_root, path.lstrip("/"))))
    return ResolvedReference(absolute_path=_normalize(os.path.join(file_dir, path)))


def resolve_reference(
    raw_reference: str, including_file: str, aliases: Dict[str, str]
) -> Optional[ResolvedReference]:
    """Resolve *raw_reference* as seen from *including_file*.

    Returns ``None`` for an empty reference, and a reference flagged
    ``unknown_alias`` when the alias is missing from *aliases*.
    """
    ref = raw_reference.strip()
    if not ref:
        return None

    path, sep, alias = ref.rpartition("@")
    if not sep:
        return _resolve_local(ref, including_file)

    path = path.strip()
    alias = alias.strip()
    if alias == SELF_ALIAS:
        return _resolve_local(path, including_file)

    folder = aliases.get(alias)
    if folder is None:
        return ResolvedReference(alias=alias, unknown_alias=True)

    repo_root = find_repo_root(os.path.dirname(os.path.abspath(including_file)))
    absolute_path = _normalize(os.path.join(os.path.dirname(repo_root), folder, path.lstrip("/")))
    return ResolvedReference(absolute_path=absolute_path, repository_name=folder, alias=alias)
