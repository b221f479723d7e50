# src/fleet_tasks/tasks/requests.py

"""
Request message parsing.

Message shape:
    {"origin": {"name": <node>, "module": <module>},
     "command": <tag>,
     "parameters": {"agents": [...], "status": ..., "error_msg": ...}}

Every validation failure raises RequestError carrying the code to answer with.
"""

from __future__ import annotations

import json
from typing import Any

from .task_models import (
    INTERNAL_TAGS,
    CommandRequest,
    CommandTag,
    ErrorCode,
    TaskStatus,
    UpgradeCancelTasksRequest,
    UpgradeGetStatusRequest,
    UpgradeRequest,
    UpgradeResultRequest,
    UpgradeUpdateStatusRequest,
)

_STATUSES = frozenset(s.value for s in TaskStatus)


class RequestError(ValueError):
    def __init__(self, code: ErrorCode, detail: str = "") -> None:
        super().__init__(detail or code.message)
        self.code = code


def _object(value: Any, code: ErrorCode, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise RequestError(code, f"{what} must be an object")
    return value


def _text(value: Any, code: ErrorCode, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise RequestError(code, f"{what} must be a non-empty string")
    return value.strip()


def _agents(params: dict[str, Any]) -> tuple[int, ...]:
    raw = params.get("agents")
    if not isinstance(raw, list):
        raise RequestError(ErrorCode.INVALID_AGENTS, "parameters.agents must be a list")

    agents: list[int] = []
    for item in raw:
        if isinstance(item, bool) or not isinstance(item, int) or item < 0:
            raise RequestError(ErrorCode.INVALID_AGENT_ID, f"bad agent id: {item!r}")
        agents.append(item)
    return tuple(agents)


def _command(raw: Any) -> CommandTag:
    if not isinstance(raw, str):
        raise RequestError(ErrorCode.INVALID_COMMAND, "command must be a string")
    try:
        tag = CommandTag(raw.strip())
    except ValueError:
        raise RequestError(ErrorCode.INVALID_COMMAND, f"unknown command: {raw!r}") from None
    if tag in INTERNAL_TAGS:
        raise RequestError(ErrorCode.INVALID_COMMAND, f"internal command: {raw!r}")
    return tag


def parse_request(text: str) -> tuple[CommandTag, CommandRequest]:
    try:
        message = json.loads(text)
    except json.JSONDecodeError:
        raise RequestError(ErrorCode.INVALID_MESSAGE, "message is not JSON") from None

    message = _object(message, ErrorCode.INVALID_MESSAGE, "message")
    origin = _object(message.get("origin"), ErrorCode.INVALID_MESSAGE, "origin")
    tag = _command(message.get("command"))
    params = _object(message.get("parameters", {}), ErrorCode.INVALID_MESSAGE, "parameters")

    if tag is CommandTag.UPGRADE_RESULT:
        return tag, UpgradeResultRequest(agent_ids=_agents(params))

    node = _text(origin.get("name"), ErrorCode.INVALID_NODE, "origin.name")

    if tag is CommandTag.UPGRADE_CANCEL_TASKS:
        return tag, UpgradeCancelTasksRequest(node=node)

    if tag in (CommandTag.UPGRADE, CommandTag.UPGRADE_CUSTOM):
        module = _text(origin.get("module"), ErrorCode.INVALID_MODULE, "origin.module")
        return tag, UpgradeRequest(agent_ids=_agents(params), node=node, module=module, command=tag)

    if tag is CommandTag.UPGRADE_GET_STATUS:
        return tag, UpgradeGetStatusRequest(agent_ids=_agents(params), node=node)

    # upgrade-update-status
    raw_status = params.get("status")
    if not isinstance(raw_status, str) or raw_status not in _STATUSES:
        raise RequestError(ErrorCode.INVALID_STATUS, f"unknown status: {raw_status!r}")

    error_msg = params.get("error_msg")
    if error_msg is not None and not isinstance(error_msg, str):
        raise RequestError(ErrorCode.INVALID_MESSAGE, "parameters.error_msg must be a string")

    return tag, UpgradeUpdateStatusRequest(
        agent_ids=_agents(params),
        node=node,
        status=raw_status,
        error_message=error_msg or None,
    )
