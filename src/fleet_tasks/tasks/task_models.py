# src/fleet_tasks/tasks/task_models.py

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum, StrEnum
from types import MappingProxyType
from typing import Any


class ErrorCode(IntEnum):
    """
    Result codes shared by request validation, handlers and the store protocol.

    The backing store replies with these numbers in its `error` field, so the
    values are part of the wire contract and must not be renumbered.
    """

    SUCCESS = 0
    INVALID_MESSAGE = 1
    INVALID_NODE = 2
    INVALID_MODULE = 3
    INVALID_COMMAND = 4
    INVALID_AGENTS = 5
    INVALID_AGENT_ID = 6
    INVALID_TASK_ID = 7
    INVALID_STATUS = 8
    DATABASE_NO_TASK = 9
    DATABASE_ERROR = 10
    DATABASE_PARSE_ERROR = 11
    DATABASE_REQUEST_ERROR = 12
    UNKNOWN_ERROR = 13

    @property
    def message(self) -> str:
        return _ERROR_MESSAGES[self]


_ERROR_MESSAGES: Mapping[ErrorCode, str] = MappingProxyType(
    {
        ErrorCode.SUCCESS: "Success",
        ErrorCode.INVALID_MESSAGE: "Invalid message",
        ErrorCode.INVALID_NODE: "Invalid node",
        ErrorCode.INVALID_MODULE: "Invalid module",
        ErrorCode.INVALID_COMMAND: "Invalid command",
        ErrorCode.INVALID_AGENTS: "Invalid agents",
        ErrorCode.INVALID_AGENT_ID: "Invalid agent ID",
        ErrorCode.INVALID_TASK_ID: "Invalid task ID",
        ErrorCode.INVALID_STATUS: "Invalid status",
        ErrorCode.DATABASE_NO_TASK: "No task in DB",
        ErrorCode.DATABASE_ERROR: "Database error",
        ErrorCode.DATABASE_PARSE_ERROR: "Parse DB response error",
        ErrorCode.DATABASE_REQUEST_ERROR: "Error in DB request",
        ErrorCode.UNKNOWN_ERROR: "Unknown error",
    }
)


class TaskStatus(StrEnum):
    """Task lifecycle status as stored by the backing store."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    ERROR = "error"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class CommandTag(StrEnum):
    """Caller-facing command tags plus the two reaper-only ones."""

    UPGRADE = "upgrade"
    UPGRADE_CUSTOM = "upgrade-custom"
    UPGRADE_GET_STATUS = "upgrade-get-status"
    UPGRADE_UPDATE_STATUS = "upgrade-update-status"
    UPGRADE_RESULT = "upgrade-result"
    UPGRADE_CANCEL_TASKS = "upgrade-cancel-tasks"

    # internal
    SET_TIMEOUT = "set-timeout"
    DELETE_OLD = "delete-old"


# Command name as the backing store knows it (`task <wire name> <params>`).
WIRE_NAMES: Mapping[CommandTag, str] = MappingProxyType(
    {tag: tag.value.replace("-", "_") for tag in CommandTag}
)

INTERNAL_TAGS = frozenset({CommandTag.SET_TIMEOUT, CommandTag.DELETE_OLD})


@dataclass(slots=True, frozen=True)
class Task:
    agent_id: int
    task_id: int
    node: str
    module: str
    command: str
    status: str
    create_time: int
    last_update_time: int
    error_message: str | None = None


# ---- requests ----


@dataclass(slots=True, frozen=True)
class UpgradeRequest:
    agent_ids: tuple[int, ...]
    node: str
    module: str
    command: CommandTag = CommandTag.UPGRADE


@dataclass(slots=True, frozen=True)
class UpgradeGetStatusRequest:
    agent_ids: tuple[int, ...]
    node: str


@dataclass(slots=True, frozen=True)
class UpgradeUpdateStatusRequest:
    agent_ids: tuple[int, ...]
    node: str
    status: str
    error_message: str | None = None


@dataclass(slots=True, frozen=True)
class UpgradeResultRequest:
    agent_ids: tuple[int, ...]


@dataclass(slots=True, frozen=True)
class UpgradeCancelTasksRequest:
    node: str


CommandRequest = (
    UpgradeRequest
    | UpgradeGetStatusRequest
    | UpgradeUpdateStatusRequest
    | UpgradeResultRequest
    | UpgradeCancelTasksRequest
)


# ---- store replies ----


class ReplyFormatError(ValueError):
    """A store payload is missing a required field or has the wrong type."""


def _require(payload: dict[str, Any], key: str, kind: type | tuple[type, ...]) -> Any:
    value = payload.get(key)
    # bool is an int subclass; never accept it as a number
    if value is None or isinstance(value, bool) or not isinstance(value, kind):
        names = "|".join(k.__name__ for k in (kind if isinstance(kind, tuple) else (kind,)))
        raise ReplyFormatError(f"field {key!r} must be {names}, got {value!r}")
    return value


def _optional(payload: dict[str, Any], key: str, kind: type | tuple[type, ...]) -> Any:
    if payload.get(key) is None:
        return None
    return _require(payload, key, kind)


def _reply_code(payload: dict[str, Any]) -> int:
    return int(_require(payload, "error", int))


# Largest epoch second that still formats as a calendar date (9999-12-31).
MAX_TIMESTAMP = 253_402_300_799


def _timestamp(payload: dict[str, Any], key: str) -> int:
    value = _require(payload, key, int)
    if not 0 <= value <= MAX_TIMESTAMP:
        raise ReplyFormatError(f"field {key!r} out of range: {value!r}")
    return value


@dataclass(slots=True, frozen=True)
class AckReply:
    """Reply that only carries a result code (update-status, cancel, delete-old)."""

    error: int

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> AckReply:
        return cls(error=_reply_code(payload))


@dataclass(slots=True, frozen=True)
class InsertReply:
    error: int
    task_id: int | None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> InsertReply:
        return cls(error=_reply_code(payload), task_id=_optional(payload, "task_id", int))


@dataclass(slots=True, frozen=True)
class StatusReply:
    error: int
    status: str | None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> StatusReply:
        error = _reply_code(payload)
        if error == ErrorCode.SUCCESS:
            return cls(error=error, status=_require(payload, "status", str))
        return cls(error=error, status=_optional(payload, "status", str))


@dataclass(slots=True, frozen=True)
class TimeoutReply:
    error: int
    next_timeout: int | None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> TimeoutReply:
        # any finite JSON number is accepted; fractions are dropped
        raw = _optional(payload, "timestamp", (int, float))
        if isinstance(raw, float) and not math.isfinite(raw):
            raise ReplyFormatError(f"field 'timestamp' must be finite, got {raw!r}")
        return cls(error=_reply_code(payload), next_timeout=None if raw is None else int(raw))


@dataclass(slots=True, frozen=True)
class TaskRecordReply:
    """
    Full task record for one agent.

    `task` is None when the store has no record: either it answered
    DATABASE_NO_TASK or the task id is missing, zero or negative.
    A present record must carry every field with the right type.
    """

    error: int
    task: Task | None

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, agent_id: int) -> TaskRecordReply:
        error = _reply_code(payload)
        task_id = _optional(payload, "task_id", int)
        if error != ErrorCode.SUCCESS or not task_id or task_id < 0:
            return cls(error=error, task=None)

        task = Task(
            agent_id=agent_id,
            task_id=task_id,
            node=_require(payload, "node", str),
            module=_require(payload, "module", str),
            command=_require(payload, "command", str),
            status=_require(payload, "status", str),
            create_time=_timestamp(payload, "create_time"),
            last_update_time=_timestamp(payload, "last_update_time"),
            error_message=_optional(payload, "message", str),
        )
        return cls(error=error, task=task)
