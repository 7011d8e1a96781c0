"""
mlboard Compiler — Graph → PyTorch Training Script
===================================================
Compiles a pipeline graph into one standalone training script.

Output dependencies: pip install torch

Pipeline:
    snapshot  →  [deserialiser]  →  Graph
    Graph     →  [validator]     →  ValidationResult (+ dependency order)
    Graph     →  [emitter]       →  Python source str

Public API
----------
    from mlboard.compiler import request_build, script_filename

    result = request_build("mnist.json")
    if result.ok:
        with open(script_filename("mnist"), "w") as f:
            f.write(result.source)
    else:
        print("\n".join(result.errors))

Cycles and missing stages are reported in the BuildResult, never raised.
A malformed snapshot raises SchemaError before any compilation starts.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from mlboard.core.GraphPrimitives import DEFAULT_PROJECT_NAME, Graph
from .deserialiser import json_to_graph
from .emitter import emit, emit_errors
from .schema import SchemaError
from .validator import ValidationResult, validate_graph

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    ok: bool
    source: str = ""
    errors: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        """The script on success, otherwise the comment-only error block."""
        return self.source if self.ok else emit_errors(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"ok": True, "source": self.source}
        return {"ok": False, "errors": list(self.errors)}


_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def script_filename(project_name: Optional[str]) -> str:
    """`<project_name>.py`, reduced to a single file name with no directory part."""
    stem = _UNSAFE_FILENAME_CHARS.sub("_", project_name or "").strip().lstrip(".")
    return f"{stem or DEFAULT_PROJECT_NAME}.py"


def _as_graph(source: Union[Graph, str, Path, Dict[str, Any]], strict: bool) -> Graph:
    if isinstance(source, Graph):
        # Builds run on a private copy so later edits cannot leak in.
        return source.copy()
    return json_to_graph(source, strict=strict)


def request_build(
    source: Union[Graph, str, Path, Dict[str, Any]],
    project_name: Optional[str] = None,
    *,
    strict: bool = False,
) -> BuildResult:
    """
    Validate a graph and, if it is valid, generate its training script.

    Args:
        source:       A Graph, a snapshot dict, or a path to a snapshot file.
        project_name: Overrides the graph's project name when given.
        strict:       Snapshot validation mode (see schema.validate).

    Returns:
        BuildResult with the script, or with every validation error.

    Raises:
        SchemaError: If a snapshot is malformed.
    """
    graph = _as_graph(source, strict)
    if project_name is not None:
        graph.project_name = project_name

    validation: ValidationResult = validate_graph(graph)
    if not validation.ok:
        logger.info(f"Build of '{graph.project_name}' rejected: {len(validation.errors)} error(s)")
        return BuildResult(ok=False, errors=validation.errors)

    source_text = emit(graph, validation.order)
    logger.info(f"Built '{graph.project_name}' ({len(graph.nodes)} nodes, {len(graph.edges)} edges)")
    return BuildResult(ok=True, source=source_text)


def compile_graph(source: Union[Graph, str, Path, Dict[str, Any]], **kwargs: Any) -> str:
    """request_build() flattened to text: the script, or the error block."""
    return request_build(source, **kwargs).text


__all__ = ["BuildResult", "SchemaError", "compile_graph", "request_build", "script_filename"]
