# src/fleet_tasks/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

Handlers and the reaper depend on these Protocols instead of a concrete socket
client. This keeps the transport swappable and makes testing easier.
"""

from contextlib import AbstractContextManager
from typing import Any, Callable, Protocol, TypeVar

from ..tasks.task_models import ErrorCode

T = TypeVar("T")

StorePayload = dict[str, Any]


class StoreConnection(Protocol):
    """One open request/response channel to the backing store."""

    def query(self, text: str) -> str: ...


# Opens a fresh connection; the context manager releases it on every exit path.
ConnectionFactory = Callable[[], AbstractContextManager[StoreConnection]]


class TaskStore(Protocol):
    """RPC contract of the backing task store, as seen by handlers and the reaper."""

    def send(self, command: str, params: StorePayload) -> tuple[StorePayload | None, ErrorCode]: ...

    def call(
            self,
            command: str,
            params: StorePayload,
            decode: Callable[[StorePayload], T],
    ) -> tuple[T | None, ErrorCode]: ...
