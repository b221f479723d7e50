# src/fleet_tasks/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local data directory exists,
- wires the store client, dispatcher and reaper.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.state import AppState
from ..tasks.dispatcher import build_dispatcher
from ..tasks.store_client import TaskStoreClient, unix_socket_factory
from ..tasks.task_reaper import TaskReaper

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.listen_socket_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings: Settings | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStoreClient(
        unix_socket_factory(settings.store_socket_path, timeout=settings.store_timeout)
    )
    logger.info("Tasks DB socket: %s", settings.store_socket_path)

    return AppState(settings=settings, store=store, dispatcher=build_dispatcher(store))


def create_reaper(state: AppState) -> TaskReaper:
    s = state.settings
    return TaskReaper(
        state.store,
        task_timeout=s.task_timeout,
        cleanup_retention=s.cleanup_retention,
        cleanup_poll_interval=s.cleanup_poll_interval,
    )
