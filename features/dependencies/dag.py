"""
Cycle detection and repair for "blocks" edges.
"""

from __future__ import annotations

import logging
from collections import deque

from features.dependencies.models import BeadDependency, DependencyType

log = logging.getLogger(__name__)


def build_dependency_graph(deps: list[BeadDependency]) -> dict[str, list[str]]:
    """Adjacency mapping over "blocks" edges; every endpoint is a node."""
    graph: dict[str, list[str]] = {}
    for dep in deps:
        if dep.type != DependencyType.BLOCKS:
            continue
        graph.setdefault(dep.from_id, []).append(dep.to_id)
        graph.setdefault(dep.to_id, [])
    return graph


def has_cycle(graph: dict[str, list[str]]) -> bool:
    """Kahn's algorithm: a cycle exists iff not every node can be removed."""
    in_degree = {node: 0 for node in graph}
    for neighbors in graph.values():
        for n in neighbors:
            in_degree[n] = in_degree.get(n, 0) + 1

    queue = deque(node for node, deg in in_degree.items() if deg == 0)
    visited = 0
    while queue:
        node = queue.popleft()
        visited += 1
        for n in graph.get(node, []):
            in_degree[n] -= 1
            if in_degree[n] == 0:
                queue.append(n)

    return visited < len(in_degree)


def validate_dag(deps: list[BeadDependency]) -> list[BeadDependency]:
    """Drop lowest-confidence "blocks" edges until the blocks graph is acyclic.

    Other relationship types are never touched. When any "blocks" edge is
    present the result lists the surviving "blocks" edges first, then the
    other types, each in input order.
    """
    blocks = [d for d in deps if d.type == DependencyType.BLOCKS]
    others = [d for d in deps if d.type != DependencyType.BLOCKS]
    if not blocks:
        return list(deps)

    while blocks and has_cycle(build_dependency_graph(blocks)):
        weakest = blocks.pop(min(range(len(blocks)), key=lambda i: blocks[i].confidence))
        log.warning(
            "Breaking dependency cycle by removing lowest-confidence edge %s -> %s (%.2f)",
            weakest.from_id, weakest.to_id, weakest.confidence,
        )

    return blocks + others
