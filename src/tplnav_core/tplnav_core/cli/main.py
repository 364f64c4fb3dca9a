# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""``tplnav`` command line: diagnostics, graphs and search over pipeline templates."""

import argparse
import logging
import os
import sys
from dataclasses import replace
from typing import List, Optional

import yaml
from pydantic import ValidationError
from rich.markup import escape

from tplnav_common.analysis import (
    DiagnosticsReport,
    IssueSeverity,
    build_file_graph,
    build_workspace_graph,
    candidate_paths,
    check_file,
    check_workspace,
    extract_template_ref,
    find_owning_template_line,
    find_repo_root,
    parse_parameters,
    parse_passed_arguments,
    parse_repository_aliases,
    parse_variables,
    read_text,
    resolve_reference,
    search,
    validate_call_site,
    worst_severity,
)
from tplnav_common.analysis.lines import split_lines

from tplnav_core.logconfig import LOG_FORMATS, AnalysisContext, configure_logging
from tplnav_core.cli.config import TemplateNavigatorConfig, load_config
from tplnav_core.cli.errors import show_error, show_success
from tplnav_core.cli.output import (
    console,
    print_graph,
    print_issues_table,
    print_issues_text,
    print_parameters,
    print_passed_arguments,
    print_search_results,
    print_summary,
    print_variables,
)

LOGGER = logging.getLogger(__name__)


def _add_workspace_argument(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--workspace",
        type=str,
        default=None,
        help="Workspace root directory (default: repository root of the target, or the current directory)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all tplnav commands."""
    parser = argparse.ArgumentParser(
        description="Navigate and check Azure Pipelines YAML templates",
        prog="tplnav",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (default: TPLNAV_LOG_LEVEL or WARNING)",
    )
    parser.add_argument(
        "--log-format",
        choices=list(LOG_FORMATS),
        default=None,
        help="Log output format (default: TPLNAV_LOG_FORMAT or rich)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run", required=True)

    # check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Report template call-site problems",
        description=(
            "Check template references for missing files, unknown repository aliases, "
            "missing/unknown/mistyped arguments, unused parameters and reference cycles."
        ),
    )
    check_parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="File or directory to check (default: the whole workspace)",
    )
    _add_workspace_argument(check_parser)
    check_parser.add_argument(
        "--format",
        choices=["text", "table"],
        default="text",
        help="Output format (default: text)",
    )
    check_parser.add_argument(
        "--warnings-as-errors",
        "-W",
        action="store_true",
        help="Treat warnings as errors (affects exit code)",
    )
    check_parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only output errors and summary",
    )

    # graph subcommand
    graph_parser = subparsers.add_parser(
        "graph",
        help="Export the template dependency graph",
        description=(
            "Export the workspace dependency graph, or with FILE the graph of its callers "
            "and included templates up to --depth hops away."
        ),
    )
    graph_parser.add_argument("file", nargs="?", default=None, help="Focal file for a scoped graph")
    _add_workspace_argument(graph_parser)
    graph_parser.add_argument("--sub-path", type=str, default=None, help="Only scan this sub-directory")
    graph_parser.add_argument("--depth", type=int, default=None, help="Hops each way for a scoped graph (1-10)")
    graph_parser.add_argument(
        "--format",
        choices=["json", "yaml"],
        default="json",
        help="Output format (default: json)",
    )

    # search subcommand
    search_parser = subparsers.add_parser("search", help="Fuzzy-search template paths")
    search_parser.add_argument("query", help="Search text, typos allowed")
    _add_workspace_argument(search_parser)
    search_parser.add_argument("--max-results", type=int, default=None, help="Maximum results to show")

    # params / vars subcommands
    params_parser = subparsers.add_parser("params", help="List the parameters a template declares")
    params_parser.add_argument("file", help="Template file")
    vars_parser = subparsers.add_parser("vars", help="List the variables a pipeline declares")
    vars_parser.add_argument("file", help="Pipeline file")

    # resolve subcommand
    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Resolve the template call-site at a line",
        description="Resolve the template referenced at (or around) LINE and check its arguments.",
    )
    resolve_parser.add_argument("file", help="File containing the call-site")
    resolve_parser.add_argument("line", type=int, help="1-based line number")

    return parser


def _workspace_for(args: argparse.Namespace, target: Optional[str] = None) -> str:
    if getattr(args, "workspace", None):
        return os.path.abspath(args.workspace)
    if target:
        target = os.path.abspath(target)
        start = target if os.path.isdir(target) else os.path.dirname(target)
        return find_repo_root(start)
    return os.getcwd()


def _read_or_report(path: str) -> Optional[str]:
    text = read_text(path)
    if text is None:
        show_error(f"Cannot read {path}", f"No such file or directory: {path}")
    return text


def cmd_check(args: argparse.Namespace, cfg: TemplateNavigatorConfig) -> int:
    """Execute the check command."""
    workspace = _workspace_for(args, args.path)
    target = os.path.abspath(args.path) if args.path else workspace

    if not os.path.exists(target):
        show_error(f"Path not found: {target}", f"No such file or directory: {target}")
        return 1

    if not args.quiet:
        console.print(f"Checking: {escape(target)}")

    if os.path.isfile(target):
        AnalysisContext.set_file(target)
        report = DiagnosticsReport(issues=check_file(target, candidate_paths(workspace)), files_checked=1)
    else:
        sub_path = os.path.relpath(target, workspace) if target != workspace else None
        if sub_path and sub_path.startswith(".."):
            workspace, sub_path = target, None
        report = check_workspace(workspace, sub_path, on_file=AnalysisContext.set_file)

    if args.format == "table":
        print_issues_table(report.issues, workspace, args.quiet)
    else:
        print_issues_text(report.issues, workspace, args.quiet)

    error_count = len(report.errors)
    warning_count = len(report.warnings)
    if error_count == 0 and warning_count == 0:
        if not args.quiet:
            show_success(f"All templates valid ({report.files_checked} files checked).")
        return 0

    print_summary(error_count, warning_count, report.files_checked)

    if report.has_errors:
        return 1
    if args.warnings_as_errors and report.has_warnings:
        return 1
    return 0


def cmd_graph(args: argparse.Namespace, cfg: TemplateNavigatorConfig) -> int:
    """Execute the graph command."""
    workspace = _workspace_for(args, args.file)
    if args.file:
        depth = args.depth if args.depth is not None else cfg.graph_depth
        try:
            graph = build_file_graph(args.file, workspace, depth)
        except ValueError as e:
            show_error("Cannot build file graph", str(e))
            return 1
    else:
        sub_path = args.sub_path if args.sub_path is not None else cfg.graph_sub_path
        graph = build_workspace_graph(workspace, sub_path)

    print_graph(graph, args.format)
    return 0


def cmd_search(args: argparse.Namespace, cfg: TemplateNavigatorConfig) -> int:
    """Execute the search command."""
    workspace = _workspace_for(args)
    max_results = args.max_results if args.max_results is not None else cfg.search_max_results
    print_search_results(search(args.query, candidate_paths(workspace), max_results))
    return 0


def cmd_params(args: argparse.Namespace, cfg: TemplateNavigatorConfig) -> int:
    text = _read_or_report(args.file)
    if text is None:
        return 1
    print_parameters(parse_parameters(text), f"Parameters of {args.file}", cfg.required_parameter_color)
    return 0


def cmd_vars(args: argparse.Namespace, cfg: TemplateNavigatorConfig) -> int:
    text = _read_or_report(args.file)
    if text is None:
        return 1
    print_variables(parse_variables(text), f"Variables of {args.file}")
    return 0


def cmd_resolve(args: argparse.Namespace, cfg: TemplateNavigatorConfig) -> int:
    """Execute the resolve command."""
    path = os.path.abspath(args.file)
    text = _read_or_report(path)
    if text is None:
        return 1

    lines = split_lines(text)
    if not 1 <= args.line <= len(lines):
        show_error(f"Line {args.line} is outside {args.file} (1-{len(lines)})")
        return 1

    owner = find_owning_template_line(lines, args.line - 1)
    reference = extract_template_ref(lines[owner]) if owner is not None else None
    if reference is None:
        show_error(f"No template call-site at {args.file}:{args.line}")
        return 1

    aliases = parse_repository_aliases(text)
    resolved = resolve_reference(reference, path, aliases)
    console.print(f"Call-site: line {owner + 1}, template [cyan]{escape(reference)}[/cyan]")
    if resolved is None:
        console.print("[yellow]Empty template reference.[/yellow]")
    elif resolved.unknown_alias:
        console.print(f"[yellow]Unknown repository alias '@{resolved.alias}'.[/yellow]")
    else:
        exists = read_text(resolved.absolute_path) is not None
        status = "[green]found[/green]" if exists else "[red]not found[/red]"
        console.print(f"Resolves to: {resolved.absolute_path} ({status})")
        if resolved.repository_name:
            console.print(f"Repository: {resolved.repository_name} (alias '@{resolved.alias}')")

    print_passed_arguments(parse_passed_arguments(lines, owner), "Passed arguments")

    issues = [replace(i, file=path) for i in validate_call_site(lines, owner, reference, path, aliases)]
    print_issues_text(issues, _workspace_for(args, path))
    return 1 if worst_severity(issues) == IssueSeverity.ERROR else 0


COMMANDS = {
    "check": cmd_check,
    "graph": cmd_graph,
    "search": cmd_search,
    "params": cmd_params,
    "vars": cmd_vars,
    "resolve": cmd_resolve,
}


def dispatch(args: argparse.Namespace, cfg: TemplateNavigatorConfig) -> int:
    """Dispatch to the appropriate command handler."""
    handler = COMMANDS.get(args.command)
    if handler is None:
        console.print(f"[red]Unknown command: {args.command}[/red]")
        return 1
    return handler(args, cfg)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for tplnav."""
    parser = build_parser()
    args = parser.parse_args(argv)

    workspace = _workspace_for(args, getattr(args, "path", None) or getattr(args, "file", None))
    try:
        cfg = load_config(workspace)
        configure_logging(args.log_level or cfg.log_level, args.log_format or cfg.log_format)
    except (ValidationError, ValueError, yaml.YAMLError) as e:
        show_error("Invalid configuration", str(e))
        return 1

    AnalysisContext.set(workspace)
    LOGGER.debug(f"Running '{args.command}' in {workspace}")
    try:
        return dispatch(args, cfg)
    finally:
        AnalysisContext.clear()


if __name__ == "__main__":
    sys.exit(main())
