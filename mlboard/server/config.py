"""
Server configuration, read from the environment (and a .env file when
python-dotenv is installed).

    MLBOARD_HOST          bind address            (default 0.0.0.0)
    MLBOARD_PORT          bind port               (default 3001)
    MLBOARD_LOG_LEVEL     root log level          (default INFO)
    MLBOARD_PROJECT_NAME  initial project name    (default "project")
    MLBOARD_SEED_DEMO     start with a demo graph (default true)
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from mlboard.core.GraphPrimitives import DEFAULT_PROJECT_NAME

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"
    project_name: str = DEFAULT_PROJECT_NAME
    seed_demo: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("MLBOARD_HOST", cls.host),
            port=int(env.get("MLBOARD_PORT", cls.port)),
            log_level=env.get("MLBOARD_LOG_LEVEL", cls.log_level).upper(),
            project_name=env.get("MLBOARD_PROJECT_NAME") or cls.project_name,
            seed_demo=env.get("MLBOARD_SEED_DEMO", "true").strip().lower() in _TRUTHY,
        )


def load_config() -> ServerConfig:
    """Load .env (if python-dotenv is available) and build a ServerConfig."""
    try:
        from dotenv import load_dotenv
        load_dotenv()
    except ImportError:
        pass  # python-dotenv not installed; fall back to environment variables
    return ServerConfig.from_env()
