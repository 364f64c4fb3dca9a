# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Value records shared by every analysis module.

All records are frozen and recomputed on each analysis pass. Line numbers are
0-based; presentation layers add one when printing.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Parameter:
    """A parameter declared in a template's top-level ``parameters:`` block."""

    name: str
    type: str = "string"
    default: Optional[str] = None
    declaration_line: int = 0

    @property
    def required(self) -> bool:
        return self.default is None


@dataclass(frozen=True)
class PassedArgument:
    name: str
    value: str
    line_number: int


@dataclass(frozen=True)
class ResolvedReference:
    """Outcome of resolving a raw ``template:`` reference.

    Exactly one of ``absolute_path is not None`` and ``unknown_alias`` holds.
    """

    absolute_path: Optional[str] = None
    repository_name: Optional[str] = None
    alias: Optional[str] = None
    unknown_alias: bool = False


@dataclass(frozen=True)
class TemplateCallSite:
    reference: str
    line_number: int


@dataclass(frozen=True)
class PipelineVariable:
    name: str
    value: str
    line_number: int


@dataclass(frozen=True)
class VariableGroup:
    name: str
    line_number: int


@dataclass(frozen=True)
class ParsedVariables:
    variables: Dict[str, PipelineVariable] = field(default_factory=dict)
    groups: List[VariableGroup] = field(default_factory=list)


class IssueSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"


class DiagnosticKind(Enum):
    MISSING_REQUIRED_PARAMETER = "missing-required-param"
    UNKNOWN_PARAMETER = "unknown-param"
    TYPE_MISMATCH = "type-mismatch"
    TEMPLATE_NOT_FOUND = "template-not-found"
    UNKNOWN_ALIAS = "unknown-alias"
    UNUSED_PARAMETER = "unused-param"
    REFERENCE_CYCLE = "reference-cycle"


@dataclass(frozen=True)
class DiagnosticIssue:
    """A single finding, with a column span usable as an editor highlight range."""

    message: str
    severity: IssueSeverity
    kind: DiagnosticKind
    line_number: int
    column_start: int
    column_end: int
    param_name: Optional[str] = None
    param_type: Optional[str] = None
    passed_value: Optional[str] = None
    # Line after which a missing argument would be appended. None when the
    # call-site has no ``parameters:`` block yet.
    insertion_line: Optional[int] = None
    file: Optional[str] = None
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        loc = self.file or "<text>"
        loc += f":{self.line_number + 1}:{self.column_start + 1}"
        msg = f"{loc}: {self.severity.value}: {self.message} [{self.kind.value}]"
        if self.suggestion:
            msg += f". Did you mean '{self.suggestion}'?"
        return msg


@dataclass(frozen=True)
class UnusedParameter:
    param_name: str
    declaration_line: int


class NodeKind(Enum):
    PIPELINE_ROOT = "pipeline"
    LOCAL_TEMPLATE = "local"
    EXTERNAL_TEMPLATE = "external"
    MISSING_FILE = "missing"
    UNKNOWN_ALIAS = "unknown"


class EdgeDirection(Enum):
    UPSTREAM = "upstream"
    DOWNSTREAM = "downstream"


@dataclass(frozen=True)
class GraphNode:
    id: str
    kind: NodeKind
    label: str
    relative_path: Optional[str] = None
    file_path: Optional[str] = None
    repository_name: Optional[str] = None
    alias: Optional[str] = None
    parameter_count: int = 0
    required_parameter_count: int = 0
    is_scope: bool = False


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    label: Optional[str] = None
    direction: Optional[EdgeDirection] = None


@dataclass(frozen=True)
class GraphData:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)

    def node(self, node_id: str) -> Optional[GraphNode]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data form for JSON/YAML export; enums become their values."""

        def plain(record: Any) -> Dict[str, Any]:
            return {
                k: (v.value if isinstance(v, Enum) else v) for k, v in asdict(record).items()
            }

        return {
            "nodes": [plain(n) for n in self.nodes],
            "edges": [plain(e) for e in self.edges],
        }


@dataclass(frozen=True)
class SearchResult:
    path: str
    relative_path: str
    score: int
