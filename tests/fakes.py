# tests/fakes.py

from __future__ import annotations

import contextlib
import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any


def ok(payload: Any) -> str:
    """Raw tasks DB reply carrying a JSON payload."""
    return "ok " + json.dumps(payload)


def parse_query(query: str) -> tuple[str, dict[str, Any]]:
    prefix, command, body = query.split(" ", 2)
    assert prefix == "task"
    return command, json.loads(body)


@dataclass(slots=True)
class FailOnQuery:
    """Connection opens fine, then the round trip raises `error`."""

    error: BaseException


Reply = str | BaseException | FailOnQuery


class _ScriptedConnection:
    def __init__(self, owner: ScriptedConnections, reply: str | FailOnQuery) -> None:
        self._owner = owner
        self._reply = reply

    def query(self, text: str) -> str:
        self._owner.queries.append(text)
        if isinstance(self._reply, FailOnQuery):
            raise self._reply.error
        return self._reply


@dataclass
class ScriptedConnections:
    """
    ConnectionFactory replaying one scripted reply per connection.

    - str: raw reply text ("ok {...}", "err ...")
    - exception: raised while connecting (e.g. ConnectionRefusedError)
    - FailOnQuery: raised after the connection is open

    Running out of replies behaves like a refused connection.
    """

    replies: list[Reply] = field(default_factory=list)
    queries: list[str] = field(default_factory=list)
    opened: int = 0
    closed: int = 0

    @contextlib.contextmanager
    def __call__(self) -> Iterator[_ScriptedConnection]:
        reply: Reply = self.replies.pop(0) if self.replies else ConnectionRefusedError("no reply scripted")
        if isinstance(reply, BaseException):
            raise reply

        self.opened += 1
        try:
            yield _ScriptedConnection(self, reply)
        finally:
            self.closed += 1

    @property
    def calls(self) -> list[tuple[str, dict[str, Any]]]:
        return [parse_query(q) for q in self.queries]


class FakeClock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@dataclass
class RecordingSleep:
    delays: list[float] = field(default_factory=list)

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
