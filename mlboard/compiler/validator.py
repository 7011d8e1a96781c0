"""
mlboard Compiler — Graph Validator
===================================
Decides whether a graph can be compiled. Every check runs; all failures are
reported together, in this order:

  1. Missing Model node
  2. Missing Loss node
  3. Missing Optimizer node
  4. Graph contains a cycle

Validation never mutates the graph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from mlboard.core.GraphPrimitives import Graph
from mlboard.core.Types import REQUIRED_STAGES, NodeType
from .scheduler import topological_order

logger = logging.getLogger(__name__)

CYCLE_ERROR = "Graph contains a cycle"


def missing_stage_error(node_type: NodeType) -> str:
    return f"Missing {node_type.value} node"


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)
    # Dependency order computed during the cycle check, reused by the emitter.
    order: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_graph(graph: Graph) -> ValidationResult:
    result = ValidationResult()

    for stage in REQUIRED_STAGES:
        if graph.first_of_type(stage) is None:
            result.errors.append(missing_stage_error(stage))

    result.order = topological_order(graph.nodes.keys(), graph.edges)
    if len(result.order) != len(graph.nodes):
        result.errors.append(CYCLE_ERROR)

    if result.ok:
        logger.debug(f"{graph!r} is valid")
    else:
        logger.debug(f"{graph!r} failed validation: {result.errors}")
    return result


__all__ = ["CYCLE_ERROR", "ValidationResult", "missing_stage_error", "validate_graph"]
