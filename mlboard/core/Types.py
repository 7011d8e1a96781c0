import math
from enum import Enum
from typing import Any, Dict, List, Union


# Node params are JSON-like values, arbitrarily nested.
ParamValue = Union[None, bool, int, float, str, List["ParamValue"], Dict[str, "ParamValue"]]
Params = Dict[str, ParamValue]


class NodeType(str, Enum):
    DATA = "Data"
    TRANSFORM = "Transform"
    SPLIT = "Split"
    MODEL = "Model"
    LOSS = "Loss"
    OPTIMIZER = "Optimizer"
    METRIC = "Metric"
    TRAINER = "Trainer"
    COMPOSITE = "Composite"

    @classmethod
    def coerce(cls, value: Any) -> Union["NodeType", Any]:
        """Return the member named by `value`, or `value` itself if unrecognised."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return value

    @classmethod
    def names(cls) -> List[str]:
        return [member.value for member in cls]


# Stages a graph needs before it can be compiled, in reporting order.
REQUIRED_STAGES = (NodeType.MODEL, NodeType.LOSS, NodeType.OPTIMIZER)


def is_param_value(value: Any) -> bool:
    """True if `value` is a JSON-like param value (recursively)."""
    if value is None or isinstance(value, (bool, str, int)):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, (list, tuple)):
        return all(is_param_value(v) for v in value)
    if isinstance(value, dict):
        return all(isinstance(k, str) and is_param_value(v) for k, v in value.items())
    return False


def is_number(value: Any) -> bool:
    """True for finite ints and floats. Booleans are not numbers here."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)
