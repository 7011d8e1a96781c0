"""
mlboard Compiler — Snapshot Deserialiser
=========================================
Converts a snapshot JSON file (or dict) into a Graph. Graph.to_dict() is
the reverse direction.

Pipeline
--------
    snapshot.json  →  [schema.validate]               →  dict
    dict           →  [deserialiser.json_to_graph]    →  Graph
    Graph          →  [validator] / [scheduler]       →  ordered nodes
    ordered nodes  →  [emitter]                       →  Python source str

See mlboard/compiler/schema.py for the snapshot format.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Union

from mlboard.core.GraphPrimitives import DEFAULT_PROJECT_NAME, Edge, Graph, Node
from .schema import node_fields, validate, validate_file

logger = logging.getLogger(__name__)


def _parse_position(raw: Any) -> Dict[str, float]:
    if not isinstance(raw, dict):
        return {"x": 0.0, "y": 0.0}
    return {"x": raw.get("x", 0.0), "y": raw.get("y", 0.0)}


def _parse_node(raw_node: Dict[str, Any]) -> Node:
    """Convert a snapshot node dict (flat or canvas-shaped) → Node."""
    fields = node_fields(raw_node)
    return Node(
        id=raw_node["id"],
        type=fields["type"],
        label=fields.get("label") or "",
        params=dict(fields.get("params") or {}),
        summary=fields.get("summary") or "",
        position=_parse_position(raw_node.get("position")),
    )


def _parse_edge(raw_edge: Dict[str, Any]) -> Edge:
    """Convert a snapshot edge dict → Edge. Marker / handle metadata is dropped."""
    return Edge(
        source=raw_edge["source"],
        target=raw_edge["target"],
        id=raw_edge.get("id"),
    )


# ── Public entry points ───────────────────────────────────────────────────────

def json_to_graph(
    source: Union[str, Path, Dict[str, Any]],
    *,
    strict: bool = False,
) -> Graph:
    """
    Parse a graph snapshot and return a Graph.

    Args:
        source: One of:
            - A file path (str or Path) to a JSON file.
            - A pre-parsed dict matching the snapshot schema.
        strict: Passed through to schema.validate().

    Returns:
        A new Graph. Node order follows the snapshot's node list.

    Raises:
        FileNotFoundError: If a path is given and the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        SchemaError: If the snapshot fails validation.
    """
    if isinstance(source, (str, Path)):
        data = validate_file(source, strict=strict)
    else:
        data = source
        validate(data, strict=strict)

    graph = Graph(project_name=data.get("projectName") or DEFAULT_PROJECT_NAME)
    for raw_node in data["nodes"]:
        graph.add_node(_parse_node(raw_node))
    for raw_edge in data["edges"]:
        # Dangling edges are kept; the scheduler tolerates them.
        graph.edges.append(_parse_edge(raw_edge))

    logger.debug(f"Loaded {graph!r}")
    return graph


__all__ = ["json_to_graph"]
