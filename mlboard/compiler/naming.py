"""
Identifier and parameter-defaulting helpers shared by the templates.

All functions are pure.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Mapping, Optional

from mlboard.core.Types import ParamValue, is_number

_NON_WORD = re.compile(r"\W+", re.ASCII)


def derive_identifier(label: Optional[str], fallback_prefix: str, index: int) -> str:
    """
    Turn a node label into a variable name.

    Every run of non-word characters becomes a single underscore. An empty
    result falls back to ``{fallback_prefix}_{index}``.

        derive_identifier("Train set", "dataset", 0)  -> "Train_set"
        derive_identifier("", "transform", 2)         -> "transform_2"
    """
    name = _NON_WORD.sub("_", label or "")
    return name or f"{fallback_prefix}_{index}"


def param_or(params: Optional[Mapping[str, ParamValue]], key: str, default: Any) -> Any:
    """params[key], or `default` when params is missing or the key is absent / null."""
    if not params:
        return default
    value = params.get(key)
    return default if value is None else value


def number_param(params: Optional[Mapping[str, ParamValue]], key: str, default: float) -> Any:
    """A finite, non-boolean number from params, else `default`."""
    value = param_or(params, key, default)
    return value if is_number(value) else default


def int_param(params: Optional[Mapping[str, ParamValue]], key: str, default: int) -> int:
    """A positive integer from params (integral floats allowed), else `default`."""
    value = number_param(params, key, default)
    if isinstance(value, float):
        if not value.is_integer():
            return default
        value = int(value)
    return value if value > 0 else default


def params_comment(params: Optional[Mapping[str, ParamValue]]) -> List[str]:
    """Pretty-printed JSON of `params`, one comment line per JSON line."""
    text = json.dumps(params or {}, indent=2, ensure_ascii=False)
    lines = text.split("\n")
    return [f"# params: {lines[0]}"] + [f"# {line}" for line in lines[1:]]


def comment_text(text: Optional[str]) -> str:
    """Free text folded onto one line so it stays inside a comment."""
    return " ".join((text or "").splitlines())


def py_literal(value: Any) -> str:
    """Python source for a number or string param value."""
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    return repr(value)


__all__ = [
    "comment_text",
    "derive_identifier",
    "int_param",
    "number_param",
    "param_or",
    "params_comment",
    "py_literal",
]
