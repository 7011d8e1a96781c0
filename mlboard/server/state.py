"""
GraphState — the board's single in-memory graph.

The editor routes are the only writers. A build works on a copy of the graph
(see mlboard.compiler.request_build), so an edit arriving after a build
starts cannot change its output.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from mlboard.compiler import BuildResult, request_build
from mlboard.compiler.deserialiser import json_to_graph
from mlboard.core.GraphPrimitives import DEFAULT_PROJECT_NAME, Edge, Graph, Node
from mlboard.core.Types import NodeType

logger = logging.getLogger(__name__)


class GraphState:
    """Holds the current graph and the last build result."""

    def __init__(self, project_name: str = DEFAULT_PROJECT_NAME, seed_demo: bool = False) -> None:
        self.graph = Graph(project_name=project_name)
        self.last_build: Optional[BuildResult] = None
        if seed_demo:
            self._seed_demo()

    # ── Demo graph ──────────────────────────────────────────────────────────

    def _seed_demo(self) -> None:
        g = self.graph
        data = g.create_node(NodeType.DATA, "MNIST", {"x": 80, "y": 100})
        split = g.create_node(NodeType.SPLIT, "Split", {"x": 300, "y": 100})
        model = g.create_node(NodeType.MODEL, "MLP", {"x": 520, "y": 100})
        loss = g.create_node(NodeType.LOSS, "CrossEntropy", {"x": 520, "y": 260})
        opt = g.create_node(NodeType.OPTIMIZER, "Adam", {"x": 740, "y": 100})
        trainer = g.create_node(NodeType.TRAINER, "Trainer", {"x": 960, "y": 180})
        metric = g.create_node(NodeType.METRIC, "Accuracy", {"x": 1180, "y": 180})

        g.update_node(data.id, params={"root": "./data", "download": True})
        g.update_node(split.id, params={"train": 0.8, "val": 0.1, "test": 0.1, "shuffle": True})
        g.update_node(opt.id, params={"lr": 1e-3})
        g.update_node(trainer.id, params={"epochs": 3, "batch_size": 64})

        g.add_edge(data.id, split.id)
        g.add_edge(split.id, model.id)
        g.add_edge(model.id, opt.id)
        g.add_edge(opt.id, trainer.id)
        g.add_edge(loss.id, trainer.id)
        g.add_edge(trainer.id, metric.id)

    # ── Whole-graph operations ──────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        return self.graph.to_dict()

    def load(self, data: Dict[str, Any], strict: bool = False) -> Graph:
        """Replace the graph with an imported snapshot, after full validation."""
        graph = json_to_graph(data, strict=strict)
        self.graph = graph
        self.last_build = None
        logger.info(f"Imported {graph!r}")
        return graph

    def on_graph_changed(self, nodes: List[Dict[str, Any]], edges: List[Dict[str, Any]]) -> Graph:
        """Bulk replace from the canvas; the project name is kept."""
        return self.load({"nodes": nodes, "edges": edges, "projectName": self.graph.project_name})

    def rename_project(self, name: str) -> None:
        self.graph.project_name = name or DEFAULT_PROJECT_NAME

    # ── Node / edge editing ─────────────────────────────────────────────────

    def create_node(self, node_type: str, label: Optional[str] = None,
                    position: Optional[Dict[str, float]] = None) -> Node:
        return self.graph.create_node(node_type, label, position)

    def update_node(self, node_id: str, label: Optional[str] = None,
                    summary: Optional[str] = None, params: Optional[Dict[str, Any]] = None,
                    params_text: Optional[str] = None) -> Node:
        # Both params inputs are checked before anything is applied; an explicit
        # params object wins over the text.
        if params_text is not None:
            parsed = self.graph.parse_params_text(node_id, params_text)
            if params is None:
                params = parsed
        return self.graph.update_node(node_id, label=label, summary=summary, params=params)

    def set_position(self, node_id: str, x: float, y: float) -> None:
        self.graph.require_node(node_id).position = {"x": x, "y": y}

    def remove_node(self, node_id: str) -> Node:
        return self.graph.remove_node(node_id)

    def add_edge(self, source: str, target: str) -> Edge:
        return self.graph.add_edge(source, target)

    def remove_edge(self, index: int) -> Edge:
        return self.graph.remove_edge(index)

    def group(self, member_ids: List[str], label: str = "Composite") -> Node:
        return self.graph.group(member_ids, label)

    # ── Build ───────────────────────────────────────────────────────────────

    def build(self) -> BuildResult:
        self.last_build = request_build(self.graph)
        return self.last_build


__all__ = ["GraphState"]
