# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Dependency graphs over the ``template:`` references of a workspace.

Two shapes are built:

- ``build_workspace_graph``: every YAML file under a root, with an edge per
  distinct (caller, template) pair
- ``build_file_graph``: one focal file plus its callers (upstream) and the
  templates it includes (downstream), a bounded number of hops each way

Nodes are keyed by normalized absolute path, so a template reached through
different spellings is one node. Unresolvable targets get synthetic ids:
``unknown-alias:{alias}:{reference}`` and ``missing:{path}``.
"""

import logging
import os
from dataclasses import replace
from typing import Dict, List, Optional, Set

from .alias_parser import parse_repository_aliases
from .models import EdgeDirection, GraphData, GraphEdge, GraphNode, NodeKind, ResolvedReference
from .parameter_parser import parse_parameters
from .references import extract_template_refs, is_pipeline_root
from .resolver import SELF_ALIAS, resolve_reference
from .workspace import collect_yaml_files, read_text, relative_path, scan_root

LOGGER = logging.getLogger(__name__)

MIN_DEPTH = 1
MAX_DEPTH = 10


def _edge_label(resolved: ResolvedReference) -> Optional[str]:
    if resolved.alias and resolved.alias != SELF_ALIAS:
        return f"@{resolved.alias}"
    return None


class _GraphAssembler:
    """Collects nodes and edges for one build.

    Kind upgrades and parameter counts are held in side tables and applied in
    ``build``, so no node is changed after it would have been handed out.
    """

    def __init__(self, workspace_root: str):
        self.workspace_root = workspace_root
        self._nodes: Dict[str, GraphNode] = {}
        self._edges: Dict[tuple, GraphEdge] = {}
        self._external: Dict[str, str] = {}
        self._texts: Dict[str, Optional[str]] = {}

    def text(self, path: str) -> Optional[str]:
        if path not in self._texts:
            self._texts[path] = read_text(path) if os.path.isfile(path) else None
        return self._texts[path]

    def _relative(self, path: str) -> str:
        try:
            return relative_path(path, self.workspace_root)
        except ValueError:
            # Different drive on Windows.
            return os.path.basename(path)

    def add_file_node(self, path: str, is_scope: bool = False) -> str:
        if path not in self._nodes:
            text = self.text(path) or ""
            self._nodes[path] = GraphNode(
                id=path,
                kind=NodeKind.PIPELINE_ROOT if is_pipeline_root(text) else NodeKind.LOCAL_TEMPLATE,
                label=os.path.basename(path),
                relative_path=self._relative(path),
                file_path=path,
                is_scope=is_scope,
            )
        return path

    def add_edge(
        self, source: str, target: str, label: Optional[str], direction: Optional[EdgeDirection] = None
    ) -> None:
        key = (source, target)
        if key not in self._edges:
            self._edges[key] = GraphEdge(source=source, target=target, label=label, direction=direction)

    def add_reference(
        self,
        source: str,
        raw_reference: str,
        resolved: ResolvedReference,
        direction: Optional[EdgeDirection] = None,
    ) -> Optional[str]:
        """Add the node for a resolved reference and an edge to it from *source*.

        Returns the target id when it is a readable file, otherwise ``None``.
        """
        if resolved.unknown_alias:
            target = f"unknown-alias:{resolved.alias}:{raw_reference}"
            if target not in self._nodes:
                self._nodes[target] = GraphNode(
                    id=target,
                    kind=NodeKind.UNKNOWN_ALIAS,
                    label=os.path.basename(raw_reference.split("@")[0].strip()),
                    alias=resolved.alias,
                )
            self.add_edge(source, target, f"@{resolved.alias}", direction)
            return None

        path = resolved.absolute_path
        if path is None:
            return None

        if self.text(path) is None:
            target = f"missing:{path}"
            if target not in self._nodes:
                self._nodes[target] = GraphNode(
                    id=target,
                    kind=NodeKind.MISSING_FILE,
                    label=os.path.basename(path),
                    relative_path=self._relative(path),
                    file_path=path,
                    repository_name=resolved.repository_name,
                    alias=resolved.alias,
                )
            self.add_edge(source, target, _edge_label(resolved), direction)
            return None

        self.add_file_node(path)
        if resolved.repository_name and path not in self._external:
            self._external[path] = resolved.repository_name
        self.add_edge(source, path, _edge_label(resolved), direction)
        return path

    def build(self) -> GraphData:
        nodes = []
        for node in self._nodes.values():
            if node.kind in (NodeKind.MISSING_FILE, NodeKind.UNKNOWN_ALIAS):
                nodes.append(node)
                continue
            changes = {}
            repository_name = self._external.get(node.id)
            if repository_name is not None:
                changes["kind"] = NodeKind.EXTERNAL_TEMPLATE
                changes["repository_name"] = repository_name
            params = parse_parameters(self.text(node.id) or "")
            changes["parameter_count"] = len(params)
            changes["required_parameter_count"] = sum(1 for p in params if p.required)
            nodes.append(replace(node, **changes))
        return GraphData(nodes=nodes, edges=list(self._edges.values()))


def _resolved_references(path: str, text: str):
    """Yield ``(raw_reference, ResolvedReference)`` for the static references in *text*."""
    aliases = parse_repository_aliases(text)
    for site in extract_template_refs(text):
        resolved = resolve_reference(site.reference, path, aliases)
        if resolved is not None:
            yield site.reference, resolved


def build_workspace_graph(workspace_root: str, sub_path: Optional[str] = None) -> GraphData:
    """Build the graph of every YAML file under *workspace_root* (or its *sub_path*)."""
    workspace_root = os.path.abspath(workspace_root)
    files = collect_yaml_files(scan_root(workspace_root, sub_path))
    LOGGER.debug(f"Building workspace graph over {len(files)} YAML files")

    assembler = _GraphAssembler(workspace_root)
    for path in files:
        assembler.add_file_node(path)

    for path in files:
        text = assembler.text(path)
        if text is None:
            continue
        for raw_reference, resolved in _resolved_references(path, text):
            assembler.add_reference(path, raw_reference, resolved)

    return assembler.build()


def build_upstream_index(files: List[str]) -> Dict[str, List[GraphEdge]]:
    """Map each referenced path to the upstream edges of its callers among *files*.

    The workspace is scanned once; each caller appears at most once per target.
    """
    index: Dict[str, List[GraphEdge]] = {}
    seen: Set[tuple] = set()
    for caller in files:
        text = read_text(caller)
        if text is None:
            continue
        for _, resolved in _resolved_references(caller, text):
            target = resolved.absolute_path
            if target is None or (caller, target) in seen:
                continue
            seen.add((caller, target))
            index.setdefault(target, []).append(
                GraphEdge(
                    source=caller,
                    target=target,
                    label=_edge_label(resolved),
                    direction=EdgeDirection.UPSTREAM,
                )
            )
    return index


def build_file_graph(file_path: str, workspace_root: str, depth: int = 1) -> GraphData:
    """Build the graph scoped to *file_path*, *depth* hops upstream and downstream.

    Raises ``ValueError`` when *depth* is outside 1..10.
    """
    if not MIN_DEPTH <= depth <= MAX_DEPTH:
        raise ValueError(f"depth={depth} must be between {MIN_DEPTH} and {MAX_DEPTH}")

    file_path = os.path.normpath(os.path.abspath(file_path))
    workspace_root = os.path.abspath(workspace_root)
    assembler = _GraphAssembler(workspace_root)
    assembler.add_file_node(file_path, is_scope=True)

    # Downstream: templates included by the focal file, then by those, ...
    visited = {file_path}
    frontier = [file_path]
    for _ in range(depth):
        next_frontier = []
        for source in frontier:
            text = assembler.text(source)
            if text is None:
                continue
            for raw_reference, resolved in _resolved_references(source, text):
                target = assembler.add_reference(source, raw_reference, resolved, EdgeDirection.DOWNSTREAM)
                if target is None:
                    continue
                if target in visited:
                    LOGGER.debug(f"Reference from {source} back to visited {target}")
                    continue
                visited.add(target)
                next_frontier.append(target)
        frontier = next_frontier

    # Upstream: files including the focal file, then their callers, ...
    index = build_upstream_index(collect_yaml_files(workspace_root))
    visited = {file_path}
    frontier = [file_path]
    for _ in range(depth):
        next_frontier = []
        for target in frontier:
            for edge in index.get(target, []):
                caller = edge.source
                assembler.add_file_node(caller)
                assembler.add_edge(caller, target, edge.label, EdgeDirection.UPSTREAM)
                if caller in visited:
                    continue
                visited.add(caller)
                next_frontier.append(caller)
        frontier = next_frontier

    return assembler.build()
