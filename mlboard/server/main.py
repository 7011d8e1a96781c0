"""
FastAPI backend for the ML pipeline board.

Start with:
    python -m mlboard.server.main

Or via uvicorn directly:
    uvicorn mlboard.server.main:app --port 3001 --reload
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mlboard import __version__
from mlboard.server.config import ServerConfig, load_config
from mlboard.server.routes.graph_routes import router
from mlboard.server.state import GraphState


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    config = config or load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="mlboard API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.config = config
    app.state.graph_state = GraphState(config.project_name, seed_demo=config.seed_demo)
    app.include_router(router, prefix="/api")

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    _config = load_config()
    uvicorn.run(
        "mlboard.server.main:create_app",
        factory=True,
        host=_config.host,
        port=_config.port,
        reload=True,
    )
