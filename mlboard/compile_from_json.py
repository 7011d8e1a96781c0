"""
compile_from_json.py — CLI for the mlboard compiler
====================================================
Compiles a board snapshot (the JSON written by the board's export) into a
standalone PyTorch training script.

Usage
-----
    python -m mlboard.compile_from_json <snapshot.json> [options]

Options
-------
    --out DIR             Output directory (default: current directory)
    --print               Print the generated source to stdout instead of writing a file
    --strict              Treat unknown node types and dangling edges as errors
    --project-name NAME   Override the snapshot's projectName
    --verbose             Debug logging

Examples
--------
    # Compile to ./mnist.py (projectName "mnist" in the snapshot):
    python -m mlboard.compile_from_json boards/mnist.json

    # Print the generated source without writing a file:
    python -m mlboard.compile_from_json boards/mnist.json --print

Exit status is 1 when the snapshot cannot be read or the graph is invalid.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from mlboard.compiler import request_build, script_filename
from mlboard.compiler.deserialiser import json_to_graph
from mlboard.compiler.schema import SchemaError


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="compile_from_json",
        description="Compile an mlboard snapshot to a PyTorch training script.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument(
        "snapshot",
        metavar="snapshot.json",
        help="Path to the snapshot JSON file to compile.",
    )
    p.add_argument(
        "--out",
        metavar="DIR",
        default=".",
        help="Output directory for the compiled .py file (default: current directory).",
    )
    p.add_argument(
        "--print",
        dest="print_only",
        action="store_true",
        help="Print generated source to stdout instead of writing a file.",
    )
    p.add_argument(
        "--strict",
        action="store_true",
        help="Treat unknown node types and dangling edges as errors rather than warnings.",
    )
    p.add_argument(
        "--project-name",
        metavar="NAME",
        default=None,
        help="Override the snapshot's projectName.",
    )
    p.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return p


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    json_path = Path(args.snapshot)
    if not json_path.exists():
        print(f"[error] File not found: {json_path}", file=sys.stderr)
        return 1

    # ── Load + validate snapshot ─────────────────────────────────────────────
    try:
        graph = json_to_graph(json_path, strict=args.strict)
    except json.JSONDecodeError as exc:
        print(f"[error] Invalid JSON: {exc}", file=sys.stderr)
        return 1
    except SchemaError as exc:
        print(f"[error] Schema validation failed: {exc}", file=sys.stderr)
        return 1

    if args.project_name:
        graph.project_name = args.project_name

    print(f"[compile_from_json] project : {graph.project_name}")
    print(f"[compile_from_json] nodes   : {len(graph.nodes)}")
    print(f"[compile_from_json] edges   : {len(graph.edges)}")

    # ── Validate + emit ──────────────────────────────────────────────────────
    result = request_build(graph)
    if not result.ok:
        for error in result.errors:
            print(f"[error] {error}", file=sys.stderr)
        print(result.text, end="")
        return 1

    # ── Output ───────────────────────────────────────────────────────────────
    if args.print_only:
        print(result.source, end="")
        return 0

    out_dir = Path(args.out)
    out_path = out_dir / script_filename(graph.project_name)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path.write_text(result.source, encoding="utf-8")
    except OSError as exc:
        print(f"[error] Could not write {out_path}: {exc}", file=sys.stderr)
        return 1

    print(f"[compile_from_json] wrote   : {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
