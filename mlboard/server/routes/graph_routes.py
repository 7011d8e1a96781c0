"""
Graph REST routes for the board editor.

All routes are mounted under /api by main.py. The editor owns the canvas;
these routes only read and write the graph model and trigger builds.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from mlboard.compiler import script_filename
from mlboard.compiler.schema import SchemaError
from mlboard.core.GraphPrimitives import MalformedParams
from mlboard.server.state import GraphState

logger = logging.getLogger(__name__)

router = APIRouter()


def get_state(request: Request) -> GraphState:
    return request.app.state.graph_state


def _attachment(filename: str) -> str:
    # Same encoding as starlette.responses.FileResponse.
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


def _not_found(exc: KeyError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc.args[0]) if exc.args else "Not found")


# ── GET /graph ────────────────────────────────────────────────────────────────

@router.get("/graph")
async def get_graph(request: Request) -> Dict[str, Any]:
    return get_state(request).snapshot()


# ── PUT /graph ────────────────────────────────────────────────────────────────

@router.put("/graph")
async def import_graph(request: Request, snapshot: Dict[str, Any]) -> Dict[str, Any]:
    state = get_state(request)
    try:
        state.load(snapshot)
    except SchemaError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return state.snapshot()


# ── PUT /graph/canvas ─────────────────────────────────────────────────────────

class CanvasBody(BaseModel):
    nodes: List[Dict[str, Any]]
    edges: List[Dict[str, Any]]


@router.put("/graph/canvas")
async def replace_canvas(request: Request, body: CanvasBody) -> Dict[str, Any]:
    """Bulk nodes/edges push from the canvas; the project name is kept."""
    state = get_state(request)
    try:
        state.on_graph_changed(body.nodes, body.edges)
    except SchemaError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return state.snapshot()


# ── PUT /graph/project ────────────────────────────────────────────────────────

class ProjectBody(BaseModel):
    name: str


@router.put("/graph/project")
async def rename_project(request: Request, body: ProjectBody) -> Dict[str, Any]:
    state = get_state(request)
    state.rename_project(body.name.strip())
    return {"projectName": state.graph.project_name}


# ── POST /graph/nodes ─────────────────────────────────────────────────────────

class CreateNodeBody(BaseModel):
    type: str
    label: Optional[str] = None
    position: Optional[Dict[str, float]] = None


@router.post("/graph/nodes", status_code=201)
async def create_node(request: Request, body: CreateNodeBody) -> Dict[str, Any]:
    try:
        node = get_state(request).create_node(body.type, body.label, body.position)
    except (ValueError, KeyError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return node.to_dict()


# ── PATCH /graph/nodes/:id ────────────────────────────────────────────────────

class UpdateNodeBody(BaseModel):
    label: Optional[str] = None
    summary: Optional[str] = None
    params: Optional[Dict[str, Any]] = None
    # Raw text from the params editor; parsed server-side.
    params_text: Optional[str] = None


@router.patch("/graph/nodes/{node_id}")
async def update_node(request: Request, node_id: str, body: UpdateNodeBody) -> Dict[str, Any]:
    try:
        node = get_state(request).update_node(
            node_id,
            label=body.label,
            summary=body.summary,
            params=body.params,
            params_text=body.params_text,
        )
    except KeyError as exc:
        raise _not_found(exc)
    except MalformedParams as exc:
        logger.info(f"Rejected params edit for {node_id}: {exc}")
        raise HTTPException(status_code=400, detail=str(exc))
    return node.to_dict()


# ── PUT /graph/nodes/:id/position ─────────────────────────────────────────────

class PositionBody(BaseModel):
    x: float
    y: float


@router.put("/graph/nodes/{node_id}/position", status_code=204)
async def set_node_position(request: Request, node_id: str, body: PositionBody) -> Response:
    try:
        get_state(request).set_position(node_id, body.x, body.y)
    except KeyError as exc:
        raise _not_found(exc)
    return Response(status_code=204)


# ── DELETE /graph/nodes/:id ───────────────────────────────────────────────────

@router.delete("/graph/nodes/{node_id}", status_code=204)
async def delete_node(request: Request, node_id: str) -> Response:
    try:
        get_state(request).remove_node(node_id)
    except KeyError as exc:
        raise _not_found(exc)
    return Response(status_code=204)


# ── POST /graph/edges ─────────────────────────────────────────────────────────

class EdgeBody(BaseModel):
    source: str
    target: str


@router.post("/graph/edges", status_code=201)
async def add_edge(request: Request, body: EdgeBody) -> Dict[str, Any]:
    try:
        edge = get_state(request).add_edge(body.source, body.target)
    except KeyError as exc:
        raise HTTPException(status_code=400, detail=str(exc.args[0]))
    return edge.to_dict()


# ── DELETE /graph/edges/:index ────────────────────────────────────────────────

@router.delete("/graph/edges/{index}", status_code=204)
async def delete_edge(request: Request, index: int) -> Response:
    try:
        get_state(request).remove_edge(index)
    except KeyError as exc:
        raise _not_found(exc)
    return Response(status_code=204)


# ── POST /graph/composites ────────────────────────────────────────────────────

class GroupBody(BaseModel):
    members: List[str]
    label: str = "Composite"


@router.post("/graph/composites", status_code=201)
async def group_nodes(request: Request, body: GroupBody) -> Dict[str, Any]:
    try:
        node = get_state(request).group(body.members, body.label)
    except KeyError as exc:
        raise _not_found(exc)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return node.to_dict()


# ── POST /graph/build ─────────────────────────────────────────────────────────

@router.post("/graph/build")
async def build(request: Request) -> Dict[str, Any]:
    return get_state(request).build().to_dict()


# ── GET /graph/script ─────────────────────────────────────────────────────────

@router.get("/graph/script", response_class=PlainTextResponse)
async def download_script(request: Request) -> PlainTextResponse:
    state = get_state(request)
    result = state.build()
    filename = script_filename(state.graph.project_name)
    return PlainTextResponse(
        result.text,
        headers={"Content-Disposition": _attachment(filename)},
    )
