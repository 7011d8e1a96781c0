import pytest

from mlboard.compiler.naming import (
    comment_text,
    derive_identifier,
    int_param,
    number_param,
    param_or,
    params_comment,
    py_literal,
)


class TestDeriveIdentifier:

    @pytest.mark.parametrize("label, expected", [
        ("Train", "Train"),
        ("Train set", "Train_set"),
        ("my - data!!set", "my_data_set"),
        ("a.b/c", "a_b_c"),
        ("snake_case_ok", "snake_case_ok"),
        ("!!!", "_"),
        ("Данные", "_"),
    ])
    def test_non_word_runs_collapse(self, label, expected):
        assert derive_identifier(label, "dataset", 0) == expected

    @pytest.mark.parametrize("label", ["", None])
    def test_empty_label_uses_fallback(self, label):
        assert derive_identifier(label, "transform", 2) == "transform_2"


class TestParamDefaults:

    def test_param_or(self):
        assert param_or({"a": 1}, "a", 5) == 1
        assert param_or({"a": 1}, "b", 5) == 5
        assert param_or({"a": None}, "a", 5) == 5
        assert param_or({}, "a", 5) == 5
        assert param_or(None, "a", 5) == 5

    def test_param_or_keeps_falsy_values(self):
        assert param_or({"shuffle": False}, "shuffle", True) is False
        assert param_or({"n": 0}, "n", 7) == 0

    @pytest.mark.parametrize("params, expected", [
        ({"lr": 0.01}, 0.01),
        ({"lr": 1}, 1),
        ({}, 1e-3),
        ({"lr": "fast"}, 1e-3),
        ({"lr": True}, 1e-3),
        ({"lr": [0.1]}, 1e-3),
        ({"lr": float("nan")}, 1e-3),
    ])
    def test_number_param(self, params, expected):
        assert number_param(params, "lr", 1e-3) == expected

    @pytest.mark.parametrize("params, expected", [
        ({"epochs": 5}, 5),
        ({"epochs": 5.0}, 5),
        ({"epochs": 2.5}, 3),
        ({"epochs": 0}, 3),
        ({"epochs": -1}, 3),
        ({"epochs": "5"}, 3),
        ({}, 3),
    ])
    def test_int_param(self, params, expected):
        value = int_param(params, "epochs", 3)
        assert value == expected
        assert isinstance(value, int)


class TestFormatting:

    def test_params_comment_empty(self):
        assert params_comment({}) == ["# params: {}"]
        assert params_comment(None) == ["# params: {}"]

    def test_params_comment_nested(self):
        assert params_comment({"size": [28, 28], "norm": {"mean": 0.5}}) == [
            "# params: {",
            '#   "size": [',
            "#     28,",
            "#     28",
            "#   ],",
            '#   "norm": {',
            '#     "mean": 0.5',
            "#   }",
            "# }",
        ]

    def test_comment_text_folds_newlines(self):
        assert comment_text("two\nlines") == "two lines"
        assert comment_text(None) == ""

    def test_py_literal(self):
        assert py_literal(0.001) == "0.001"
        assert py_literal(3) == "3"
        assert py_literal('say "hi"') == '"say \\"hi\\""'
