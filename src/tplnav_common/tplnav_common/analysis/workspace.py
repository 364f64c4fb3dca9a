# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""File-system access for the analysis core: enumeration and text snapshots."""

import logging
import os
import re
from typing import Dict, List, Optional

LOGGER = logging.getLogger(__name__)

SKIP_DIRS = frozenset({".git", "node_modules", ".vscode", "dist", "out", "build", ".idea"})
YAML_FILE_RE = re.compile(r"\.ya?ml$", re.IGNORECASE)


def read_text(path: str) -> Optional[str]:
    """Return the contents of *path*, or ``None`` if it cannot be read as UTF-8 text."""
    try:
        with open(path, encoding="utf-8") as fh:
            return fh.read()
    except (OSError, UnicodeDecodeError) as e:
        LOGGER.debug(f"Could not read {path}: {e}")
        return None


def collect_yaml_files(root: str) -> List[str]:
    """Return absolute paths of every YAML file under *root*, in sorted walk order.

    Conventional non-source directories (``SKIP_DIRS``) are not descended into.
    """
    root = os.path.abspath(root)
    if os.path.isfile(root):
        return [root] if YAML_FILE_RE.search(root) else []

    found: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for name in sorted(filenames):
            if YAML_FILE_RE.search(name):
                found.append(os.path.join(dirpath, name))
    return found


def relative_path(path: str, root: str) -> str:
    """Return *path* relative to *root* with ``/`` separators."""
    return os.path.relpath(path, root).replace(os.sep, "/")


def candidate_paths(root: str) -> Dict[str, str]:
    """Map every YAML file under *root* (absolute path) to its workspace-relative path."""
    root = os.path.abspath(root)
    return {path: relative_path(path, root) for path in collect_yaml_files(root)}


def scan_root(workspace_root: str, sub_path: Optional[str] = None) -> str:
    """Return the directory to scan: *workspace_root*, or *sub_path* inside it."""
    if sub_path and sub_path.strip():
        return os.path.join(workspace_root, sub_path.strip().lstrip("/\\"))
    return workspace_root
