"""
Environment-driven settings.

Everything has a local-dev default so the API starts with no `.env` at all.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str | None
    db_host: str
    db_port: int
    db_user: str
    db_password: str
    db_name: str
    server_host: str
    server_port: int
    pool_min_size: int
    pool_max_size: int
    command_timeout_s: float
    connect_retry_delay_s: float
    log_level: str
    cors_origins: tuple[str, ...]


def load_settings() -> Settings:
    return Settings(
        database_url=os.environ.get("DATABASE_URL", "").strip() or None,
        db_host=_env_str("POSTGRES_HOST", "localhost"),
        db_port=_env_int("POSTGRES_PORT", 5432),
        db_user=_env_str("POSTGRES_USER", "postgres"),
        db_password=os.environ.get("POSTGRES_PASSWORD", ""),
        db_name=_env_str("POSTGRES_DATABASE", "restaurants"),
        server_host=_env_str("SERVER_HOST", "0.0.0.0"),
        server_port=_env_int("SERVER_PORT", 8000),
        pool_min_size=max(1, _env_int("DB_POOL_MIN_SIZE", 1)),
        pool_max_size=max(1, _env_int("DB_POOL_MAX_SIZE", 10)),
        command_timeout_s=_env_float("DB_COMMAND_TIMEOUT_S", 30.0),
        connect_retry_delay_s=_env_float("DB_CONNECT_RETRY_DELAY_S", 1.0),
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        cors_origins=_env_list("CORS_ORIGINS", ("http://localhost:5173", "http://127.0.0.1:5173")),
    )
