"""
mlboard Compiler — Python Source Emitter
=========================================
Writes the training script for a validated graph.

Layout of the output (fixed, whatever the dependency order):

    header + imports + device selection
    Data, Transform, Split, Model, Loss, Optimizer, Trainer, Metric fragments
    model save

Within a fragment, nodes appear in dependency order. The output contains no
timestamps or other run-dependent content: the same graph always produces
the same bytes.
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional

from mlboard.core.GraphPrimitives import DEFAULT_PROJECT_NAME, Graph, Node
from .naming import comment_text
from .scheduler import topological_order
from .templates import MODEL_VAR, TEMPLATE_REGISTRY, CodeWriter

logger = logging.getLogger(__name__)

MODEL_EXTENSION = ".pt"


def artifact_name(project_name: Optional[str]) -> str:
    return f"{project_name or DEFAULT_PROJECT_NAME}{MODEL_EXTENSION}"


# ── File header ───────────────────────────────────────────────────────────────

def _header(project_name: str) -> List[str]:
    return [
        "# Auto-generated by mlboard",
        f"# Project: {comment_text(project_name)}",
        "import torch",
        "import torch.nn as nn",
        "import torch.optim as optim",
        "from torch.utils.data import DataLoader",
        "",
        "# ---- Config ----",
        'device = "cuda" if torch.cuda.is_available() else "cpu"',
        "",
    ]


def _footer(project_name: str) -> List[str]:
    path = json.dumps(artifact_name(project_name), ensure_ascii=False)
    return [
        "# Save model",
        f"torch.save({MODEL_VAR}.state_dict(), {path})",
    ]


# ── Public API ────────────────────────────────────────────────────────────────

def emit(graph: Graph, order: Optional[List[str]] = None) -> str:
    """
    Generate the training script for `graph`.

    Args:
        graph: A graph that passed validation.
        order: Dependency order of node ids; computed when omitted.

    Returns:
        Python source, newline-terminated.
    """
    if order is None:
        order = topological_order(graph.nodes.keys(), graph.edges)
    ordered: List[Node] = [graph.nodes[nid] for nid in order if nid in graph.nodes]
    project_name = graph.project_name or DEFAULT_PROJECT_NAME

    writer = CodeWriter()
    writer.extend(_header(project_name))

    for node_type, template in TEMPLATE_REGISTRY.items():
        group = [n for n in ordered if n.type is node_type]
        if group:
            logger.debug(f"Emitting {node_type.value} fragment for {len(group)} node(s)")
            template.emit_group(group, writer)

    writer.extend(_footer(project_name))
    return writer.result() + "\n"


def emit_errors(errors: List[str]) -> str:
    """Comment-only block listing validation errors, one per line."""
    lines = ["# Graph errors:"] + [f"# - {error}" for error in errors]
    return "\n".join(lines) + "\n"


__all__ = ["MODEL_EXTENSION", "artifact_name", "emit", "emit_errors"]
