import copy
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union

from .Types import NodeType, Params, is_param_value

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "project"


class MalformedParams(ValueError):
    """Raised when a params edit does not parse to a JSON object."""


def new_id(prefix: str = "node") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:7]}"


@dataclass
class Node:
    id: str
    type: Union[NodeType, str]
    label: str = ""
    params: Params = field(default_factory=dict)
    summary: str = ""
    # Canvas coordinates; the compiler never reads these.
    position: Dict[str, float] = field(default_factory=lambda: {"x": 0.0, "y": 0.0})

    def __post_init__(self):
        self.type = NodeType.coerce(self.type)

    @property
    def type_name(self) -> str:
        return self.type.value if isinstance(self.type, NodeType) else str(self.type)

    def is_known_type(self) -> bool:
        return isinstance(self.type, NodeType)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type_name,
            "label": self.label,
            "params": copy.deepcopy(self.params),
            "summary": self.summary,
            "position": dict(self.position),
        }

    def __repr__(self):
        return f"Node({self.id}:{self.type_name} {self.label!r})"


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    # Canvas edge id; irrelevant to compilation.
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {"source": self.source, "target": self.target}
        if self.id is not None:
            d["id"] = self.id
        return d

    def __repr__(self):
        return f"Edge({self.source} -> {self.target})"


class Graph:
    """
    Nodes, edges and a project name.

    Nodes keep their insertion order, which the scheduler uses to break ties.
    Parallel edges are allowed. The only automatic edge deletion is the
    cleanup done by remove_node().
    """

    def __init__(self, project_name: str = DEFAULT_PROJECT_NAME):
        self.project_name = project_name
        self.nodes: Dict[str, Node] = {}
        self.edges: List[Edge] = []

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes.values())

    def __repr__(self):
        return f"Graph({self.project_name!r}, nodes={len(self.nodes)}, edges={len(self.edges)})"

    # ── Queries ────────────────────────────────────────────────────────────

    def get_node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    def require_node(self, node_id: str) -> Node:
        node = self.nodes.get(node_id)
        if node is None:
            raise KeyError(f"Node '{node_id}' not found")
        return node

    def nodes_of_type(self, node_type: NodeType) -> List[Node]:
        return [n for n in self.nodes.values() if n.type is node_type]

    def first_of_type(self, node_type: NodeType) -> Optional[Node]:
        return next((n for n in self.nodes.values() if n.type is node_type), None)

    def incoming(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.target == node_id]

    def outgoing(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.source == node_id]

    # ── Node editing ───────────────────────────────────────────────────────

    def add_node(self, node: Node) -> Node:
        if node.id in self.nodes:
            raise ValueError(f"Node with id '{node.id}' already exists in the graph")
        self.nodes[node.id] = node
        return node

    def create_node(
        self,
        node_type: Union[NodeType, str],
        label: Optional[str] = None,
        position: Optional[Dict[str, float]] = None,
    ) -> Node:
        node_type = NodeType.coerce(node_type)
        if not isinstance(node_type, NodeType):
            raise ValueError(f"Unknown node type '{node_type}'")
        node = Node(
            id=new_id("node"),
            type=node_type,
            label=node_type.value if label is None else label,
        )
        if position is not None:
            node.position = {"x": float(position["x"]), "y": float(position["y"])}
        logger.debug(f"Created {node!r}")
        return self.add_node(node)

    def remove_node(self, node_id: str) -> Node:
        node = self.require_node(node_id)
        del self.nodes[node_id]
        before = len(self.edges)
        self.edges = [e for e in self.edges if e.source != node_id and e.target != node_id]
        logger.debug(f"Removed {node!r} and {before - len(self.edges)} attached edge(s)")
        return node

    def update_node(
        self,
        node_id: str,
        label: Optional[str] = None,
        summary: Optional[str] = None,
        params: Optional[Params] = None,
    ) -> Node:
        node = self.require_node(node_id)
        if params is not None:
            if not isinstance(params, dict) or not is_param_value(params):
                raise MalformedParams(f"params for node '{node_id}' must be a JSON object")
            node.params = copy.deepcopy(params)
        if label is not None:
            node.label = label
        if summary is not None:
            node.summary = summary
        return node

    def parse_params_text(self, node_id: str, text: str) -> Params:
        """Parse params editor text for `node_id` without applying it. Blank text is {}."""
        self.require_node(node_id)
        if not text.strip():
            return {}
        try:
            params = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedParams(f"params for node '{node_id}' are not valid JSON: {exc}") from exc
        if not isinstance(params, dict) or not is_param_value(params):
            raise MalformedParams(f"params for node '{node_id}' must be a JSON object")
        return params

    def set_params_text(self, node_id: str, text: str) -> Node:
        """Replace a node's params from JSON text; keeps the old params on failure."""
        return self.update_node(node_id, params=self.parse_params_text(node_id, text))

    def group(self, member_ids: List[str], label: str = "Composite") -> Node:
        """Add a Composite node recording `member_ids`. Members are not moved or rewired."""
        if not member_ids:
            raise ValueError("Cannot group an empty selection")
        anchor = self.require_node(member_ids[0])
        for member_id in member_ids[1:]:
            self.require_node(member_id)
        node = Node(
            id=new_id("comp"),
            type=NodeType.COMPOSITE,
            label=label,
            params={"members": list(dict.fromkeys(member_ids))},
            summary="Node group",
            position={
                "x": anchor.position.get("x", 0.0) + 60,
                "y": anchor.position.get("y", 0.0) + 60,
            },
        )
        return self.add_node(node)

    # ── Edge editing ───────────────────────────────────────────────────────

    def add_edge(self, source: str, target: str, edge_id: Optional[str] = None) -> Edge:
        self.require_node(source)
        self.require_node(target)
        edge = Edge(source, target, edge_id or new_id("edge"))
        self.edges.append(edge)
        return edge

    def remove_edge(self, index: int) -> Edge:
        if not 0 <= index < len(self.edges):
            raise KeyError(f"Edge index {index} out of range")
        return self.edges.pop(index)

    # ── Snapshots ──────────────────────────────────────────────────────────

    def copy(self) -> "Graph":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes.values()],
            "edges": [e.to_dict() for e in self.edges],
            "projectName": self.project_name,
        }
