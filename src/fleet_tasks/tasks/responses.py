# src/fleet_tasks/tasks/responses.py

"""Response shaping: per-agent entries and the envelope sent back to callers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from .task_models import ErrorCode, Task

Entry = dict[str, Any]
TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"


def format_timestamp(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime(TIMESTAMP_FORMAT)


def data_entry(
    code: ErrorCode | int,
    agent_id: int | None = None,
    task_id: int | None = None,
    status: str | None = None,
) -> Entry:
    """One result line: `{"error", "message", "agent"?, "task_id"?, "status"?}`."""
    code = ErrorCode(code)
    entry: Entry = {"error": int(code), "message": code.message}
    if agent_id is not None:
        entry["agent"] = agent_id
    if task_id is not None:
        entry["task_id"] = task_id
    if status is not None:
        entry["status"] = status
    return entry


def with_task_detail(entry: Entry, task: Task) -> Entry:
    entry.update(
        {
            "node": task.node,
            "module": task.module,
            "command": task.command,
            "status": task.status,
            "create_time": format_timestamp(task.create_time),
            "last_update_time": format_timestamp(task.last_update_time),
        }
    )
    if task.error_message:
        entry["error_msg"] = task.error_message
    return entry


def build_envelope(code: ErrorCode | int, data: list[Entry] | Entry | None = None) -> dict[str, Any]:
    """
    Top-level reply for one request.

    `data` is always a list on the wire: a single entry (cancel-tasks) is
    wrapped, a missing response becomes an empty list.
    """
    code = ErrorCode(code)
    if data is None:
        items: list[Entry] = []
    elif isinstance(data, dict):
        items = [data]
    else:
        items = list(data)
    return {"error": int(code), "message": code.message, "data": items}
