# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Reference-cycle detection over a template dependency graph.

Graph traversal in ``graph_builder`` is cycle-safe but only records the edges
that close a loop. This module reports the loops themselves as ordered paths,
for use in workspace diagnostics.
"""

from typing import Dict, Iterable, List, Optional, Tuple

Edge = Tuple[str, str]


def _adjacency(node_ids: List[str], edges: Iterable[Edge]) -> Dict[str, List[str]]:
    graph: Dict[str, List[str]] = {n: [] for n in node_ids}
    for src, dst in edges:
        if src in graph and dst in graph:
            graph[src].append(dst)
    return graph


def detect_cycles(node_ids: List[str], edges: Iterable[Edge]) -> List[List[str]]:
    """Return one path per back edge found by a depth-first walk.

    Each path ``[a, b, ..., z]`` means ``a -> b -> ... -> z -> a``. Nodes are
    visited in the order of *node_ids*, so results are deterministic.
    """
    graph = _adjacency(node_ids, edges)

    WHITE, GRAY, BLACK = 0, 1, 2
    color: Dict[str, int] = {n: WHITE for n in node_ids}
    parent: Dict[str, Optional[str]] = {n: None for n in node_ids}
    cycles: List[List[str]] = []

    # Iterative DFS; template chains can be deeper than the recursion limit.
    for start in node_ids:
        if color[start] != WHITE:
            continue
        color[start] = GRAY
        stack = [(start, iter(graph[start]))]
        while stack:
            node, neighbours = stack[-1]
            advanced = False
            for nbr in neighbours:
                if color[nbr] == GRAY:
                    cycle = []
                    cur: Optional[str] = node
                    while cur is not None and cur != nbr:
                        cycle.append(cur)
                        cur = parent[cur]
                    cycle.append(nbr)
                    cycle.reverse()
                    cycles.append(cycle)
                elif color[nbr] == WHITE:
                    parent[nbr] = node
                    color[nbr] = GRAY
                    stack.append((nbr, iter(graph[nbr])))
                    advanced = True
                    break
            if not advanced:
                color[node] = BLACK
                stack.pop()

    return cycles


def detect_cycle(node_ids: List[str], edges: Iterable[Edge]) -> Optional[List[str]]:
    """Return an ordered list of node ids forming a cycle, or ``None``."""
    cycles = detect_cycles(node_ids, edges)
    return cycles[0] if cycles else None
