"""
mlboard Compiler — Snapshot Schema + Validator
===============================================
Defines the snapshot format exchanged with the board's import/export and
checks its shape before it is allowed to replace a graph.

Snapshot format
---------------

    {
      "projectName": "mnist",                    // artifact name (str, optional)
      "nodes": [
        {
          "id":       "node_a1b2c3d",            // unique within the snapshot (str, required)
          "type":     "Optimizer",               // pipeline stage type (str, required)
          "label":    "Adam",                    // display name (str, optional)
          "params":   { "lr": 0.01 },            // JSON object (optional)
          "summary":  "",                        // free text (str, optional)
          "position": { "x": 120, "y": 80 }      // canvas coordinates (optional)
        }
      ],
      "edges": [
        { "source": "node_a1b2c3d", "target": "node_e4f5a6b" }
      ]
    }

Canvas exports nest the stage fields under "data" and set the outer "type"
to the canvas renderer name ("default"):

    { "id": "node_a1b2c3d", "type": "default", "position": {...},
      "data": { "label": "Adam", "type": "Optimizer", "params": {...}, "summary": "" } }

Both node shapes are accepted as-is.

Known node types
----------------
  Data  Transform  Split  Model  Loss  Optimizer  Metric  Trainer  Composite
"""

from __future__ import annotations

import json
import logging
import warnings
from pathlib import Path
from typing import Any, Dict, List, Union

from mlboard.core.Types import NodeType, is_param_value

logger = logging.getLogger(__name__)


# ── Known types ───────────────────────────────────────────────────────────────

KNOWN_NODE_TYPES: frozenset[str] = frozenset(NodeType.names())


# ── Validation helpers ────────────────────────────────────────────────────────

class SchemaError(ValueError):
    """Raised when a graph snapshot fails structural validation."""


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise SchemaError(message)


def _require_keys(obj: Dict, keys: List[str], context: str) -> None:
    for key in keys:
        _require(key in obj, f"{context}: missing required field '{key}'")


def _report(message: str, strict: bool) -> None:
    if strict:
        raise SchemaError(message)
    logger.warning(message)
    warnings.warn(message, stacklevel=4)


def node_fields(node: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return the stage fields of a snapshot node regardless of its shape.

    For canvas-shaped nodes the fields in node["data"] override the outer
    ones, so the outer "type" (the renderer name) only counts when "data"
    carries no type of its own.
    """
    data = node.get("data")
    if isinstance(data, dict):
        return {**node, **data}
    return node


# ── Public validator ─────────────────────────────────────────────────────────

def validate(data: Dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate a parsed graph snapshot.

    Args:
        data:   A pre-parsed dict (result of json.load / json.loads).
        strict: When True, unknown node types and edges that reference
                missing nodes raise SchemaError. When False (default),
                they produce a warning and are kept.

    Raises:
        SchemaError: On any structural violation.
    """
    _require(isinstance(data, dict), "snapshot must be a JSON object at the top level")
    _require_keys(data, ["nodes", "edges"], "snapshot root")

    _require(isinstance(data["nodes"], list), "nodes must be a list")
    _require(isinstance(data["edges"], list), "edges must be a list")
    if "projectName" in data:
        _require(
            data["projectName"] is None or isinstance(data["projectName"], str),
            "projectName must be a string",
        )

    # ── Validate nodes ──────────────────────────────────────────────────────

    node_ids: set[str] = set()

    for i, node in enumerate(data["nodes"]):
        ctx = f"nodes[{i}]"
        _require(isinstance(node, dict), f"{ctx}: each node must be a JSON object")
        _require_keys(node, ["id"], ctx)
        _require(isinstance(node["id"], str), f"{ctx}.id must be a string")
        _require(
            node["id"] not in node_ids,
            f"{ctx}: duplicate node id '{node['id']}'",
        )
        node_ids.add(node["id"])

        fields = node_fields(node)
        _require_keys(fields, ["type"], ctx)
        _require(isinstance(fields["type"], str), f"{ctx}.type must be a string")

        for text_field in ("label", "summary"):
            value = fields.get(text_field)
            _require(
                value is None or isinstance(value, str),
                f"{ctx}.{text_field} must be a string",
            )

        params = fields.get("params")
        if params is not None:
            _require(isinstance(params, dict), f"{ctx}.params must be an object")
            _require(
                is_param_value(params),
                f"{ctx}.params must contain only JSON values",
            )

        position = node.get("position")
        if position is not None:
            _require(isinstance(position, dict), f"{ctx}.position must be an object")

        type_name = fields["type"]
        if type_name not in KNOWN_NODE_TYPES:
            _report(f"{ctx}: unknown node type '{type_name}' (node will be ignored by the compiler)", strict)

    # ── Validate edges ──────────────────────────────────────────────────────

    for i, edge in enumerate(data["edges"]):
        ctx = f"edges[{i}]"
        _require(isinstance(edge, dict), f"{ctx}: each edge must be a JSON object")
        _require_keys(edge, ["source", "target"], ctx)

        for end in ("source", "target"):
            _require(isinstance(edge[end], str), f"{ctx}.{end} must be a string")
            if edge[end] not in node_ids:
                _report(f"{ctx}: {end} '{edge[end]}' not found in nodes", strict)


def validate_file(path: Union[str, Path], *, strict: bool = False) -> Dict[str, Any]:
    """
    Load and validate a snapshot file.

    Returns:
        The parsed dict on success.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        SchemaError: If the graph structure is invalid.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    validate(data, strict=strict)
    return data


__all__ = ["KNOWN_NODE_TYPES", "SchemaError", "node_fields", "validate", "validate_file"]
