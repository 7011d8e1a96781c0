"""
mlboard Compiler — Dependency Scheduler
========================================
Orders a graph's nodes so that every edge's source comes before its target
(Kahn's algorithm).

Tie-breaking
------------
Ready nodes are processed first-in first-out. Nodes that become ready at the
same moment (the initial sources, or the successors freed by one node) enter
the queue in the graph's node insertion order, so for a fixed graph the order
is always the same.

Cycles
------
Nodes on a cycle, or downstream of one, never reach in-degree zero and are
left out. The result is then shorter than the node count; the validator
treats that shortfall as a cycle. Nothing is raised here.

Dangling edges
--------------
An edge whose target is a known node still counts toward that node's
in-degree even if its source is unknown, so such a target is never emitted.
Unknown targets are tracked but never enter the queue.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from typing import Dict, Iterable, List

from mlboard.core.GraphPrimitives import Edge, Graph, Node

logger = logging.getLogger(__name__)


def topological_order(node_ids: Iterable[str], edges: Iterable[Edge]) -> List[str]:
    """
    Return node ids in dependency order.

    Args:
        node_ids: Node ids in insertion order.
        edges:    Directed edges; parallel and dangling edges are allowed.

    Returns:
        Ordered ids. Shorter than the node count iff some nodes could not be
        ordered (a cycle, or an edge from an unknown source).
    """
    node_ids = list(node_ids)
    position = {nid: i for i, nid in enumerate(node_ids)}

    in_degree: Dict[str, int] = {nid: 0 for nid in node_ids}
    successors: Dict[str, List[str]] = defaultdict(list)

    for edge in edges:
        successors[edge.source].append(edge.target)
        in_degree[edge.target] = in_degree.get(edge.target, 0) + 1

    queue = deque(nid for nid in node_ids if in_degree[nid] == 0)
    order: List[str] = []

    while queue:
        nid = queue.popleft()
        order.append(nid)
        ready = []
        for succ in successors.get(nid, ()):
            in_degree[succ] -= 1
            if in_degree[succ] == 0 and succ in position:
                ready.append(succ)
        queue.extend(sorted(ready, key=position.__getitem__))

    if len(order) < len(node_ids):
        logger.debug(f"Ordered {len(order)} of {len(node_ids)} nodes; the rest are blocked")
    return order


def ordered_nodes(graph: Graph) -> List[Node]:
    """Topological order of the graph's nodes as Node objects."""
    order = topological_order(graph.nodes.keys(), graph.edges)
    return [graph.nodes[nid] for nid in order]


__all__ = ["topological_order", "ordered_nodes"]
