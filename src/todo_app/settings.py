from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - TODO_DB_PATH: path to the sqlite db file. Default './App_Data/todo.db'
    - TODO_DB_TIMEOUT: seconds to wait on a locked database. Default 5.0
    - TODO_API_HOST: interface the HTTP API binds to. Default 'localhost'
    - TODO_API_PORT: port the HTTP API listens on. Default 5000
    - LOG_LEVEL: logging level name. Default 'INFO'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    """

    db_path: str
    db_timeout: float
    api_host: str
    api_port: int
    log_level: str
    cors_allow_origins: List[str]


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_float(value: str, default: float) -> float:
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    port = _parse_int(_get_env("TODO_API_PORT", "5000"), 5000)
    if not (0 < port < 65536):
        port = 5000

    return Settings(
        db_path=_get_env("TODO_DB_PATH", os.path.join(".", "App_Data", "todo.db")).strip(),
        db_timeout=_parse_float(_get_env("TODO_DB_TIMEOUT", "5.0"), 5.0),
        api_host=_get_env("TODO_API_HOST", "localhost").strip(),
        api_port=port,
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
    )
