from mlboard.compiler.validator import CYCLE_ERROR, validate_graph
from mlboard.core.GraphPrimitives import Edge, Graph, Node
from mlboard.core.Types import NodeType


def make_graph(*types):
    g = Graph()
    for i, t in enumerate(types):
        g.add_node(Node(f"n{i}", t))
    return g


class TestValidateGraph:

    def test_minimal_valid_graph(self):
        g = make_graph(NodeType.MODEL, NodeType.LOSS, NodeType.OPTIMIZER)
        result = validate_graph(g)
        assert result.ok is True
        assert result.errors == []
        assert result.order == ["n0", "n1", "n2"]

    def test_all_missing_stages_reported_together(self):
        """Only Data + Transform: three missing-stage errors, no cycle error."""
        g = make_graph(NodeType.DATA, NodeType.TRANSFORM)
        g.add_edge("n0", "n1")
        result = validate_graph(g)
        assert result.ok is False
        assert result.errors == [
            "Missing Model node",
            "Missing Loss node",
            "Missing Optimizer node",
        ]
        assert CYCLE_ERROR not in result.errors

    def test_single_missing_stage(self):
        g = make_graph(NodeType.MODEL, NodeType.OPTIMIZER)
        assert validate_graph(g).errors == ["Missing Loss node"]

    def test_cycle_reported(self):
        g = make_graph(NodeType.MODEL, NodeType.LOSS, NodeType.OPTIMIZER)
        g.add_edge("n0", "n1")
        g.add_edge("n1", "n2")
        g.add_edge("n2", "n0")
        result = validate_graph(g)
        assert result.ok is False
        assert result.errors == [CYCLE_ERROR]

    def test_cycle_and_missing_stages_both_reported(self):
        g = make_graph(NodeType.DATA, NodeType.TRANSFORM)
        g.add_edge("n0", "n1")
        g.add_edge("n1", "n0")
        errors = validate_graph(g).errors
        assert len(errors) == 4
        assert errors[-1] == CYCLE_ERROR

    def test_empty_graph(self):
        result = validate_graph(Graph())
        assert len(result.errors) == 3
        assert CYCLE_ERROR not in result.errors

    def test_dangling_source_counts_as_cycle(self):
        g = make_graph(NodeType.MODEL, NodeType.LOSS, NodeType.OPTIMIZER)
        g.edges.append(Edge("ghost", "n0"))
        assert validate_graph(g).errors == [CYCLE_ERROR]

    def test_extra_singletons_are_not_errors(self):
        g = make_graph(
            NodeType.MODEL, NodeType.MODEL, NodeType.LOSS,
            NodeType.OPTIMIZER, NodeType.OPTIMIZER, NodeType.TRAINER, NodeType.TRAINER,
        )
        assert validate_graph(g).ok

    def test_unknown_type_is_inert(self):
        g = make_graph(NodeType.MODEL, NodeType.LOSS, NodeType.OPTIMIZER, "Plugin")
        assert validate_graph(g).ok

    def test_validation_does_not_mutate(self):
        g = make_graph(NodeType.DATA, NodeType.MODEL)
        g.add_edge("n0", "n1")
        before = g.to_dict()
        validate_graph(g)
        assert g.to_dict() == before
