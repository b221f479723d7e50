# tests/test_config.py

from __future__ import annotations

import os
from pathlib import Path

import pytest

from fleet_tasks.config import (
    DEFAULT_CLEANUP_POLL_INTERVAL,
    DEFAULT_CLEANUP_RETENTION,
    DEFAULT_TASK_TIMEOUT,
    Settings,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("FLEET_TASKS_"):
            monkeypatch.delenv(name)


def test_defaults() -> None:
    s = Settings.from_env()
    assert s.task_timeout == DEFAULT_TASK_TIMEOUT == 900
    assert s.cleanup_retention == DEFAULT_CLEANUP_RETENTION
    assert s.cleanup_poll_interval == DEFAULT_CLEANUP_POLL_INTERVAL
    assert s.store_socket_path == s.data_dir / "wdb.sock"
    assert s.listen_enabled and s.reaper_enabled


def test_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("FLEET_TASKS_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("FLEET_TASKS_TASK_TIMEOUT", "60")
    monkeypatch.setenv("FLEET_TASKS_REAPER_ENABLED", "no")
    monkeypatch.setenv("FLEET_TASKS_STORE_SOCKET", "/run/wdb")

    s = Settings.from_env()

    assert s.task_timeout == 60
    assert s.reaper_enabled is False
    assert s.store_socket_path == Path("/run/wdb")
    assert s.listen_socket_path == tmp_path / "task.sock"


@pytest.mark.parametrize("raw", ["soon", "0", "-5", ""])
def test_bad_numbers_fall_back(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("FLEET_TASKS_CLEANUP_POLL_INTERVAL", raw)
    monkeypatch.setenv("FLEET_TASKS_STORE_TIMEOUT", raw)

    s = Settings.from_env()

    assert s.cleanup_poll_interval == DEFAULT_CLEANUP_POLL_INTERVAL
    assert s.store_timeout == 10.0
