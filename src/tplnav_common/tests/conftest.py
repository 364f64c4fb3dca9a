# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import os
from typing import Callable

import pytest


@pytest.fixture
def workspace(tmp_path) -> str:
    """A repository checkout ``<tmp>/ws`` with a ``.git`` marker directory."""
    root = tmp_path / "ws"
    (root / ".git").mkdir(parents=True)
    return str(root)


@pytest.fixture
def write_file() -> Callable[[str, str, str], str]:
    """Write ``text`` to ``root/relative`` (creating directories) and return the absolute path."""

    def _write(root: str, relative: str, text: str) -> str:
        path = os.path.join(root, *relative.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
        return path

    return _write
