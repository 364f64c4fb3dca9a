# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Template analysis package, shared by the CLI and any editor integration.

Public API
----------
parse_parameters            Parse the ``parameters:`` declarations of a template.
parse_passed_arguments      Arguments passed at one ``template:`` call-site.
has_parameters_passthrough  Detect the ``${{ each p in parameters }}:`` idiom.
parse_repository_aliases    Alias -> repository folder from ``resources.repositories``.
parse_variables             Pipeline variables and variable groups.
resolve_reference           Resolve a ``template:`` reference to an absolute path.
validate_call_site          Missing / unknown / mistyped argument diagnostics.
find_unused_parameters      Declared parameters never read by the template.
build_workspace_graph       Dependency graph of every YAML file in a workspace.
build_file_graph            Depth-bounded graph around one file.
search                      Fuzzy search over workspace-relative paths.
check_file                  All diagnostics for one file.
check_workspace             All diagnostics for a workspace, including cycles.
detect_cycle                Return a reference cycle path, if any.
"""

from .alias_parser import parse_repository_aliases
from .call_site_validator import COMPATIBLE_TYPES, infer_value_type, is_compatible, validate_call_site
from .cycle_detector import detect_cycle, detect_cycles
from .diagnostics import DiagnosticsReport, check_file, check_workspace, worst_severity
from .fuzzy_search import search
from .graph_builder import build_file_graph, build_upstream_index, build_workspace_graph
from .models import (
    DiagnosticIssue,
    DiagnosticKind,
    EdgeDirection,
    GraphData,
    GraphEdge,
    GraphNode,
    IssueSeverity,
    NodeKind,
    Parameter,
    ParsedVariables,
    PassedArgument,
    PipelineVariable,
    ResolvedReference,
    SearchResult,
    TemplateCallSite,
    UnusedParameter,
    VariableGroup,
)
from .parameter_parser import parse_parameters
from .passed_arguments import find_insertion_line, has_parameters_passthrough, parse_passed_arguments
from .references import (
    extract_template_ref,
    extract_template_refs,
    find_owning_template_line,
    find_template_call_sites,
    is_pipeline_root,
)
from .resolver import find_repo_root, resolve_reference
from .unused_parameters import find_unused_parameters
from .variable_parser import parse_variables
from .workspace import candidate_paths, collect_yaml_files, read_text, relative_path

__all__ = [
    "COMPATIBLE_TYPES",
    "DiagnosticIssue",
    "DiagnosticKind",
    "DiagnosticsReport",
    "EdgeDirection",
    "GraphData",
    "GraphEdge",
    "GraphNode",
    "IssueSeverity",
    "NodeKind",
    "Parameter",
    "ParsedVariables",
    "PassedArgument",
    "PipelineVariable",
    "ResolvedReference",
    "SearchResult",
    "TemplateCallSite",
    "UnusedParameter",
    "VariableGroup",
    "build_file_graph",
    "build_upstream_index",
    "build_workspace_graph",
    "candidate_paths",
    "check_file",
    "check_workspace",
    "collect_yaml_files",
    "detect_cycle",
    "detect_cycles",
    "extract_template_ref",
    "extract_template_refs",
    "find_insertion_line",
    "find_owning_template_line",
    "find_repo_root",
    "find_template_call_sites",
    "find_unused_parameters",
    "has_parameters_passthrough",
    "infer_value_type",
    "is_compatible",
    "is_pipeline_root",
    "parse_parameters",
    "parse_passed_arguments",
    "parse_repository_aliases",
    "parse_variables",
    "read_text",
    "relative_path",
    "resolve_reference",
    "search",
    "validate_call_site",
    "worst_severity",
]
