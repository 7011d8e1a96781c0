import json

import pytest

from mlboard.compiler import request_build
from mlboard.compiler.deserialiser import json_to_graph
from mlboard.compiler.schema import SchemaError, validate, validate_file
from mlboard.core.Types import NodeType


def flat_snapshot():
    return {
        "projectName": "mnist",
        "nodes": [
            {"id": "d", "type": "Data", "label": "Train", "params": {}, "summary": "", "position": {"x": 0, "y": 0}},
            {"id": "m", "type": "Model", "label": "Net", "params": {"hidden": 128}, "summary": "", "position": {"x": 200, "y": 0}},
            {"id": "l", "type": "Loss", "label": "CE", "params": {}, "summary": "", "position": {"x": 200, "y": 100}},
            {"id": "o", "type": "Optimizer", "label": "Adam", "params": {"lr": 0.01}, "summary": "", "position": {"x": 400, "y": 0}},
        ],
        "edges": [
            {"source": "d", "target": "m"},
            {"source": "m", "target": "o"},
            {"source": "l", "target": "o"},
        ],
    }


def canvas_snapshot():
    """The shape the board's JSON export writes (stage fields nested under data)."""
    snap = flat_snapshot()
    snap["nodes"] = [
        {
            "id": n["id"],
            "type": "default",
            "position": n["position"],
            "data": {k: n[k] for k in ("label", "type", "params", "summary")},
        }
        for n in snap["nodes"]
    ]
    snap["edges"] = [
        dict(e, id=f"e{i}", markerEnd={"type": "arrowclosed"}, sourceHandle=None)
        for i, e in enumerate(snap["edges"])
    ]
    return snap


class TestValidate:

    def test_flat_snapshot_is_valid(self):
        validate(flat_snapshot(), strict=True)

    def test_canvas_snapshot_is_valid(self):
        validate(canvas_snapshot(), strict=True)

    @pytest.mark.parametrize("mutate, message", [
        (lambda s: s.pop("nodes"), "missing required field 'nodes'"),
        (lambda s: s.update(edges={}), "edges must be a list"),
        (lambda s: s["nodes"].append({"id": "d", "type": "Data"}), "duplicate node id 'd'"),
        (lambda s: s["nodes"][0].pop("type"), "missing required field 'type'"),
        (lambda s: s["nodes"][0].update(id=7), "id must be a string"),
        (lambda s: s["nodes"][0].update(params="lr=1"), "params must be an object"),
        (lambda s: s["nodes"][0].update(params={"x": float("nan")}), "only JSON values"),
        (lambda s: s["nodes"][0].update(label=3), "label must be a string"),
        (lambda s: s["edges"].append({"source": "d"}), "missing required field 'target'"),
        (lambda s: s.update(projectName=5), "projectName must be a string"),
    ])
    def test_structural_errors(self, mutate, message):
        snap = flat_snapshot()
        mutate(snap)
        with pytest.raises(SchemaError, match=message):
            validate(snap)

    def test_top_level_must_be_object(self):
        with pytest.raises(SchemaError):
            validate([])

    def test_unknown_type_warns(self):
        snap = flat_snapshot()
        snap["nodes"].append({"id": "x", "type": "Plugin"})
        with pytest.warns(UserWarning, match="unknown node type 'Plugin'"):
            validate(snap)

    def test_unknown_type_strict(self):
        snap = flat_snapshot()
        snap["nodes"].append({"id": "x", "type": "Plugin"})
        with pytest.raises(SchemaError):
            validate(snap, strict=True)

    def test_dangling_edge_warns(self):
        snap = flat_snapshot()
        snap["edges"].append({"source": "ghost", "target": "d"})
        with pytest.warns(UserWarning, match="source 'ghost' not found"):
            validate(snap)
        with pytest.raises(SchemaError):
            validate(snap, strict=True)

    def test_validate_file(self, tmp_path):
        path = tmp_path / "board.json"
        path.write_text(json.dumps(flat_snapshot()), encoding="utf-8")
        assert validate_file(path)["projectName"] == "mnist"


class TestJsonToGraph:

    @pytest.mark.parametrize("make", [flat_snapshot, canvas_snapshot])
    def test_both_shapes_load_identically(self, make):
        g = json_to_graph(make())
        assert g.project_name == "mnist"
        assert list(g.nodes) == ["d", "m", "l", "o"]
        assert g.nodes["m"].type is NodeType.MODEL
        assert g.nodes["m"].label == "Net"
        assert g.nodes["m"].params == {"hidden": 128}
        assert g.nodes["m"].position == {"x": 200, "y": 0}
        assert [(e.source, e.target) for e in g.edges] == [("d", "m"), ("m", "o"), ("l", "o")]

    def test_both_shapes_compile_identically(self):
        flat = request_build(flat_snapshot())
        canvas = request_build(canvas_snapshot())
        assert flat.ok
        assert flat.source == canvas.source

    def test_missing_optional_fields(self):
        g = json_to_graph({"nodes": [{"id": "a", "type": "Loss"}], "edges": []})
        node = g.nodes["a"]
        assert g.project_name == "project"
        assert (node.label, node.params, node.summary) == ("", {}, "")
        assert node.position == {"x": 0.0, "y": 0.0}

    def test_data_fields_kept_when_type_is_outside_data(self):
        node = {
            "id": "o",
            "type": "Optimizer",
            "data": {"label": "Adam", "params": {"lr": 0.2}, "summary": "fast"},
        }
        g = json_to_graph({"nodes": [node], "edges": []})
        optimizer = g.nodes["o"]
        assert optimizer.type is NodeType.OPTIMIZER
        assert (optimizer.label, optimizer.params, optimizer.summary) == ("Adam", {"lr": 0.2}, "fast")

    def test_data_params_are_validated(self):
        node = {"id": "o", "type": "Optimizer", "data": {"params": [1]}}
        with pytest.raises(SchemaError, match="params must be an object"):
            validate({"nodes": [node], "edges": []})

    def test_null_label_and_project_name(self):
        g = json_to_graph({"projectName": None, "nodes": [{"id": "a", "type": "Data", "label": None}], "edges": []})
        assert g.project_name == "project"
        assert g.nodes["a"].label == ""

    def test_from_file(self, tmp_path):
        path = tmp_path / "board.json"
        path.write_text(json.dumps(canvas_snapshot()), encoding="utf-8")
        assert len(json_to_graph(path).nodes) == 4
        assert request_build(str(path)).ok

    def test_malformed_snapshot_raises(self):
        with pytest.raises(SchemaError):
            json_to_graph({"nodes": [{"id": "a"}], "edges": []})
        with pytest.raises(SchemaError):
            request_build({"nodes": "oops", "edges": []})

    def test_round_trip_through_flat_shape(self):
        g = json_to_graph(canvas_snapshot())
        again = json_to_graph(g.to_dict())
        assert again.to_dict() == g.to_dict()
