# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Locate ``template:`` inclusion directives in a document."""

import re
from typing import List, Optional

from .lines import indent_of, split_lines, strip_line_comment, unquote
from .models import TemplateCallSite

PIPELINE_ROOT_RE = re.compile(r"^(?:trigger|pr|schedules|stages|jobs|steps|extends)\s*:", re.MULTILINE)
_TEMPLATE_REF_RE = re.compile(r"(?:^|\s)-?\s*template\s*:\s*(.+)$")


def is_pipeline_root(text: str) -> bool:
    """True when *text* has a top-level pipeline key such as ``trigger:`` or ``stages:``."""
    return PIPELINE_ROOT_RE.search(text.replace("\r\n", "\n")) is not None


def is_dynamic_reference(reference: str) -> bool:
    """References built from expressions or macros cannot be resolved statically."""
    return "${" in reference or "$(" in reference


def extract_template_ref(line: str) -> Optional[str]:
    """Return the reference after ``template:`` on *line*, or ``None``.

    Comments are removed first, so a commented-out include is ignored.
    """
    m = _TEMPLATE_REF_RE.search(strip_line_comment(line.rstrip()))
    if m is None:
        return None
    ref = unquote(m.group(1).strip()).strip()
    return ref or None


def find_template_call_sites(text: str) -> List[TemplateCallSite]:
    """Return every ``template:`` directive in *text*, dynamic references included."""
    sites = []
    for i, line in enumerate(split_lines(text)):
        ref = extract_template_ref(line)
        if ref is not None:
            sites.append(TemplateCallSite(reference=ref, line_number=i))
    return sites


def extract_template_refs(text: str) -> List[TemplateCallSite]:
    """Return the statically resolvable ``template:`` directives in *text*."""
    return [s for s in find_template_call_sites(text) if not is_dynamic_reference(s.reference)]


def find_owning_template_line(lines: List[str], cursor_line: int) -> Optional[int]:
    """Return the index of the ``template:`` line owning *cursor_line*.

    That is *cursor_line* itself when it holds a directive, or the nearest
    directive above it whose ``parameters:`` block contains the cursor.
    """
    if not 0 <= cursor_line < len(lines):
        raise ValueError(f"line index {cursor_line} is outside the document (0..{len(lines) - 1})")

    if extract_template_ref(lines[cursor_line]) is not None:
        return cursor_line

    cursor_text = lines[cursor_line].rstrip()
    # Only lines shallower than every line walked so far can enclose the cursor.
    limit = indent_of(cursor_text) if cursor_text.strip() else None

    for i in range(cursor_line - 1, -1, -1):
        line = lines[i].rstrip()
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        indent = indent_of(line)
        if limit is not None and indent >= limit:
            continue
        if extract_template_ref(line) is not None:
            return i
        if indent == 0:
            return None
        limit = indent
    return None
