# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""File- and workspace-level diagnostics.

Runs every call-site of a file through the call-site validator and adds the
findings that need the file system or the whole workspace: references to
missing files or unknown repository aliases, unused template parameters, and
reference cycles.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional

from .alias_parser import parse_repository_aliases
from .call_site_validator import validate_call_site
from .cycle_detector import detect_cycles
from .fuzzy_search import search
from .graph_builder import build_workspace_graph
from .lines import split_lines
from .models import DiagnosticIssue, DiagnosticKind, IssueSeverity, NodeKind
from .references import extract_template_refs
from .resolver import resolve_reference
from .unused_parameters import find_unused_parameters
from .workspace import candidate_paths, collect_yaml_files, read_text, relative_path, scan_root

LOGGER = logging.getLogger(__name__)


@dataclass
class DiagnosticsReport:
    """Diagnostics for one or more files."""

    issues: List[DiagnosticIssue] = field(default_factory=list)
    files_checked: int = 0

    @property
    def has_errors(self) -> bool:
        return any(i.severity == IssueSeverity.ERROR for i in self.issues)

    @property
    def has_warnings(self) -> bool:
        return any(i.severity == IssueSeverity.WARNING for i in self.issues)

    @property
    def errors(self) -> List[DiagnosticIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.ERROR]

    @property
    def warnings(self) -> List[DiagnosticIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.WARNING]


def worst_severity(issues: Iterable[DiagnosticIssue]) -> Optional[IssueSeverity]:
    """Return ERROR if any issue is an error, WARNING if any is a warning, else ``None``."""
    worst = None
    for issue in issues:
        if issue.severity == IssueSeverity.ERROR:
            return IssueSeverity.ERROR
        worst = IssueSeverity.WARNING
    return worst


def _span(line: str, token: str):
    start = line.find(token)
    if start < 0:
        return 0, len(line)
    return start, start + len(token)


def _suggest(reference: str, candidates: Optional[Dict[str, str]]) -> Optional[str]:
    if not candidates:
        return None
    query = os.path.splitext(os.path.basename(reference.split("@")[0].strip()))[0]
    results = search(query, candidates, max_results=1)
    return results[0].relative_path if results else None


def _reference_issues(
    path: str, lines: List[str], text: str, candidates: Optional[Dict[str, str]]
) -> List[DiagnosticIssue]:
    aliases = parse_repository_aliases(text)
    issues: List[DiagnosticIssue] = []

    for site in extract_template_refs(text):
        line = lines[site.line_number]
        resolved = resolve_reference(site.reference, path, aliases)
        if resolved is None:
            continue
        start, end = _span(line, site.reference)

        if resolved.unknown_alias:
            issues.append(
                DiagnosticIssue(
                    message=(
                        f"Unknown repository alias '{resolved.alias}' in template reference "
                        f"'{site.reference}'; declare it under resources.repositories"
                    ),
                    severity=IssueSeverity.WARNING,
                    kind=DiagnosticKind.UNKNOWN_ALIAS,
                    line_number=site.line_number,
                    column_start=start,
                    column_end=end,
                    file=path,
                )
            )
            continue

        if read_text(resolved.absolute_path) is None:
            issues.append(
                DiagnosticIssue(
                    message=f"Template file not found: '{site.reference}' (resolved to {resolved.absolute_path})",
                    severity=IssueSeverity.ERROR,
                    kind=DiagnosticKind.TEMPLATE_NOT_FOUND,
                    line_number=site.line_number,
                    column_start=start,
                    column_end=end,
                    file=path,
                    suggestion=_suggest(site.reference, candidates),
                )
            )
            continue

        for issue in validate_call_site(lines, site.line_number, site.reference, path, aliases):
            issues.append(replace(issue, file=path))

    return issues


def _unused_parameter_issues(path: str, lines: List[str], text: str) -> List[DiagnosticIssue]:
    issues = []
    for unused in find_unused_parameters(text):
        start, end = _span(lines[unused.declaration_line], unused.param_name)
        issues.append(
            DiagnosticIssue(
                message=f"Parameter '{unused.param_name}' is declared but never used",
                severity=IssueSeverity.WARNING,
                kind=DiagnosticKind.UNUSED_PARAMETER,
                line_number=unused.declaration_line,
                column_start=start,
                column_end=end,
                param_name=unused.param_name,
                file=path,
            )
        )
    return issues


def check_file(path: str, candidates: Optional[Dict[str, str]] = None) -> List[DiagnosticIssue]:
    """Return every diagnostic for the file at *path*.

    *candidates* (absolute path -> workspace-relative path) enables "did you
    mean" suggestions for references to missing files.
    """
    path = os.path.abspath(path)
    text = read_text(path)
    if text is None:
        return []
    lines = split_lines(text)
    return _reference_issues(path, lines, text, candidates) + _unused_parameter_issues(path, lines, text)


def _cycle_issue(cycle: List[str], root: str) -> DiagnosticIssue:
    source = cycle[0]
    target = cycle[1] if len(cycle) > 1 else cycle[0]
    line_number, start, end = 0, 0, 0

    text = read_text(source) or ""
    lines = split_lines(text)
    aliases = parse_repository_aliases(text)
    for site in extract_template_refs(text):
        resolved = resolve_reference(site.reference, source, aliases)
        if resolved is not None and resolved.absolute_path == target:
            line_number = site.line_number
            start, end = _span(lines[line_number], site.reference)
            break

    chain = " -> ".join(relative_path(p, root) for p in cycle + [cycle[0]])
    return DiagnosticIssue(
        message=f"Template reference cycle: {chain}",
        severity=IssueSeverity.WARNING,
        kind=DiagnosticKind.REFERENCE_CYCLE,
        line_number=line_number,
        column_start=start,
        column_end=end,
        file=source,
    )


def check_workspace(
    root: str, sub_path: Optional[str] = None, on_file: Optional[Callable[[str], None]] = None
) -> DiagnosticsReport:
    """Check every YAML file under *root* (or its *sub_path*), plus reference cycles.

    *on_file* is called with each file's path before it is checked.
    """
    root = os.path.abspath(root)
    candidates = candidate_paths(root)
    graph = build_workspace_graph(root, sub_path)

    report = DiagnosticsReport()
    for path in collect_yaml_files(scan_root(root, sub_path)):
        if on_file is not None:
            on_file(path)
        report.issues.extend(check_file(path, candidates))
        report.files_checked += 1

    file_ids = [
        n.id for n in graph.nodes if n.kind not in (NodeKind.MISSING_FILE, NodeKind.UNKNOWN_ALIAS)
    ]
    for cycle in detect_cycles(file_ids, [(e.source, e.target) for e in graph.edges]):
        LOGGER.debug(f"Reference cycle through {len(cycle)} templates")
        report.issues.append(_cycle_issue(cycle, root))

    return report
