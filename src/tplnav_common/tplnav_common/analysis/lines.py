# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Small helpers for the line-oriented YAML scanners."""

import re
from typing import List

# A "#" starts a comment only at the start of the text or after whitespace, so
# values such as '#E06C75' or 'a#b' survive.
_TRAILING_COMMENT_RE = re.compile(r"(?:^|\s+)#.*$")
# Whole-line comments and trailing comments, as used when scanning for
# ``template:`` directives.
_LINE_COMMENT_RE = re.compile(r"(^\s*#.*|\s#.*)$")


def split_lines(text: str) -> List[str]:
    """Split *text* into lines after normalizing CRLF to LF."""
    return text.replace("\r\n", "\n").split("\n")


def indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def strip_trailing_comment(value: str) -> str:
    return _TRAILING_COMMENT_RE.sub("", value).strip()


def strip_line_comment(line: str) -> str:
    return _LINE_COMMENT_RE.sub("", line)


def unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def check_line_index(lines: List[str], index: int) -> None:
    if not 0 <= index < len(lines):
        raise ValueError(f"line index {index} is outside the document (0..{len(lines) - 1})")
