# src/fleet_tasks/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole process.
- Reaper tuning (timeout / retention / poll interval) lives here, not in the reaper.
- Bad numeric values fall back to defaults instead of crashing at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "FLEET_TASKS"

# Defaults for the reaper (seconds).
DEFAULT_TASK_TIMEOUT = 900
DEFAULT_CLEANUP_RETENTION = 7 * 24 * 3600
DEFAULT_CLEANUP_POLL_INTERVAL = 24 * 3600

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Backing task store ----
    store_socket_path: Path
    store_timeout: float

    # ---- Request listener ----
    listen_enabled: bool
    listen_socket_path: Path

    # ---- Reaper ----
    reaper_enabled: bool
    task_timeout: int
    cleanup_retention: int
    cleanup_poll_interval: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "fleet-tasks").strip() or "fleet-tasks"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/fleet_tasks"))
        store_socket_path = _env_path(_k("STORE_SOCKET"), data_dir / "wdb.sock")
        store_timeout = _env_float(_k("STORE_TIMEOUT"), 10.0)

        listen_enabled = _env_bool(_k("LISTEN_ENABLED"), True)
        listen_socket_path = _env_path(_k("LISTEN_SOCKET"), data_dir / "task.sock")

        reaper_enabled = _env_bool(_k("REAPER_ENABLED"), True)
        task_timeout = _env_int(_k("TASK_TIMEOUT"), DEFAULT_TASK_TIMEOUT)
        cleanup_retention = _env_int(_k("CLEANUP_RETENTION"), DEFAULT_CLEANUP_RETENTION)
        cleanup_poll_interval = _env_int(
            _k("CLEANUP_POLL_INTERVAL"), DEFAULT_CLEANUP_POLL_INTERVAL
        )

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            store_socket_path=store_socket_path,
            store_timeout=store_timeout,
            listen_enabled=listen_enabled,
            listen_socket_path=listen_socket_path,
            reaper_enabled=reaper_enabled,
            task_timeout=task_timeout,
            cleanup_retention=cleanup_retention,
            cleanup_poll_interval=cleanup_poll_interval,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
