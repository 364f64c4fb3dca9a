# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Rich rendering for CLI results."""

import json
import os
from dataclasses import replace
from typing import Dict, List

import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tplnav_common.analysis import (
    DiagnosticIssue,
    GraphData,
    IssueSeverity,
    Parameter,
    ParsedVariables,
    PassedArgument,
    SearchResult,
)

console = Console()


def _severity_style(severity: IssueSeverity) -> str:
    return "red" if severity == IssueSeverity.ERROR else "yellow"


def _display_path(path: str, workspace_root: str) -> str:
    try:
        return os.path.relpath(path, workspace_root)
    except ValueError:
        return path


def print_issues_text(issues: List[DiagnosticIssue], workspace_root: str, quiet: bool = False):
    """Print one ``file:line:col: severity: message`` line per issue."""
    for issue in issues:
        if quiet and issue.severity == IssueSeverity.WARNING:
            continue
        style = _severity_style(issue.severity)
        shown = _with_display_file(issue, workspace_root) if issue.file else issue
        console.print(f"[{style}]{escape(str(shown))}[/{style}]")


def _with_display_file(issue: DiagnosticIssue, workspace_root: str) -> DiagnosticIssue:
    return replace(issue, file=_display_path(issue.file, workspace_root))


def print_issues_table(issues: List[DiagnosticIssue], workspace_root: str, quiet: bool = False):
    """Print issues in table format."""
    if not issues:
        return

    table = Table(title="Template Diagnostics")
    table.add_column("File", style="cyan")
    table.add_column("Line", style="magenta")
    table.add_column("Severity", style="bold")
    table.add_column("Kind")
    table.add_column("Message")
    table.add_column("Suggestion", style="green")

    for issue in issues:
        if quiet and issue.severity == IssueSeverity.WARNING:
            continue
        style = _severity_style(issue.severity)
        table.add_row(
            escape(_display_path(issue.file, workspace_root)) if issue.file else "-",
            str(issue.line_number + 1),
            f"[{style}]{issue.severity.value}[/{style}]",
            issue.kind.value,
            escape(issue.message),
            escape(issue.suggestion) if issue.suggestion else "-",
        )

    console.print(table)


def print_summary(error_count: int, warning_count: int, files_checked: int):
    summary_parts = []
    if error_count > 0:
        summary_parts.append(f"[red]{error_count} error{'s' if error_count != 1 else ''}[/red]")
    if warning_count > 0:
        summary_parts.append(
            f"[yellow]{warning_count} warning{'s' if warning_count != 1 else ''}[/yellow]"
        )
    console.print(
        f"\nChecked {files_checked} file{'s' if files_checked != 1 else ''}: {', '.join(summary_parts)}"
    )


def print_parameters(parameters: List[Parameter], title: str, required_color: str):
    if not parameters:
        console.print("[dim]No parameters declared.[/dim]")
        return

    table = Table(title=escape(title))
    table.add_column("Line", style="magenta")
    table.add_column("Name")
    table.add_column("Type", style="cyan")
    table.add_column("Default")
    table.add_column("Required")

    for p in parameters:
        name = f"[bold {required_color}]{escape(p.name)}[/]" if p.required else escape(p.name)
        table.add_row(
            str(p.declaration_line + 1),
            name,
            escape(p.type),
            escape(p.default) if p.default is not None else "-",
            "yes" if p.required else "no",
        )
    console.print(table)


def print_variables(parsed: ParsedVariables, title: str):
    if not parsed.variables and not parsed.groups:
        console.print("[dim]No variables declared.[/dim]")
        return

    table = Table(title=escape(title))
    table.add_column("Line", style="magenta")
    table.add_column("Name")
    table.add_column("Value")
    for var in parsed.variables.values():
        table.add_row(str(var.line_number + 1), escape(var.name), escape(var.value))
    for group in parsed.groups:
        table.add_row(str(group.line_number + 1), escape(group.name), "[dim](variable group)[/dim]")
    console.print(table)


def print_passed_arguments(passed: Dict[str, PassedArgument], title: str):
    if not passed:
        console.print("[dim]No arguments passed.[/dim]")
        return

    table = Table(title=escape(title))
    table.add_column("Line", style="magenta")
    table.add_column("Name")
    table.add_column("Value")
    for arg in passed.values():
        table.add_row(str(arg.line_number + 1), escape(arg.name), escape(arg.value) or "[dim](object)[/dim]")
    console.print(table)


def print_search_results(results: List[SearchResult]):
    if not results:
        console.print("[yellow]No matching templates.[/yellow]")
        return

    table = Table(title="Search Results")
    table.add_column("Score", style="magenta", justify="right")
    table.add_column("Path", style="cyan")
    for r in results:
        table.add_row(str(r.score), escape(r.relative_path))
    console.print(table)


def print_graph(graph: GraphData, fmt: str = "json"):
    """Write *graph* to stdout as JSON or YAML, without wrapping or markup."""
    data = graph.to_dict()
    if fmt == "yaml":
        rendered = yaml.safe_dump(data, sort_keys=False)
    else:
        rendered = json.dumps(data, indent=2)
    console.print(rendered, markup=False, highlight=False, emoji=False, soft_wrap=True)
