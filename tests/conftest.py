# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from fleet_tasks.core.state import AppState
from fleet_tasks.tasks.dispatcher import build_dispatcher
from fleet_tasks.tasks.store_client import TaskStoreClient

from .fakes import ScriptedConnections


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the listener.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="fleet-tasks-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        store_socket_path=tmp_path / "wdb.sock",
        store_timeout=2.0,
        listen_enabled=True,
        listen_socket_path=tmp_path / "task.sock",
        reaper_enabled=False,
        task_timeout=900,
        cleanup_retention=604800,
        cleanup_poll_interval=86400,
    )


@pytest.fixture()
def connections() -> ScriptedConnections:
    return ScriptedConnections()


@pytest.fixture()
def store(connections: ScriptedConnections) -> TaskStoreClient:
    """Real TaskStoreClient over scripted connections: exercises the wire format too."""
    return TaskStoreClient(connections)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStoreClient) -> AppState:
    return AppState(settings=settings, store=store, dispatcher=build_dispatcher(store))
