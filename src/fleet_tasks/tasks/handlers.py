# src/fleet_tasks/tasks/handlers.py

"""
Per-command business logic.

Every batch handler walks its agents in input order and follows one rule:
- a hard store failure discards everything built so far and returns
  (None, DATABASE_ERROR), whatever the store client reported;
- DATABASE_NO_TASK is an answer, not a failure, and is recorded for that agent.
"""

from __future__ import annotations

import logging
from functools import partial

from ..core.ports import TaskStore
from .responses import Entry, data_entry, with_task_detail
from .task_models import (
    WIRE_NAMES,
    AckReply,
    CommandTag,
    ErrorCode,
    InsertReply,
    StatusReply,
    TaskRecordReply,
    UpgradeCancelTasksRequest,
    UpgradeGetStatusRequest,
    UpgradeRequest,
    UpgradeResultRequest,
    UpgradeUpdateStatusRequest,
)

logger = logging.getLogger(__name__)

BatchResult = tuple[list[Entry] | None, ErrorCode]
SingleResult = tuple[Entry | None, ErrorCode]

# Per-agent reply codes that are recorded instead of aborting the batch.
_SOFT_CODES = frozenset({ErrorCode.SUCCESS, ErrorCode.DATABASE_NO_TASK})


def _abort(command: str, agent_id: int, cause: ErrorCode) -> BatchResult:
    logger.warning("%s aborted at agent=%s: %s", command, agent_id, cause.message)
    return None, ErrorCode.DATABASE_ERROR


def cmd_upgrade(store: TaskStore, request: UpgradeRequest) -> BatchResult:
    wire = WIRE_NAMES[request.command]
    response: list[Entry] = []

    for agent_id in request.agent_ids:
        params = {
            "agent": agent_id,
            "node": request.node,
            "module": request.module,
            "command": wire,
        }
        reply, code = store.call(wire, params, InsertReply.from_payload)
        if reply is None:
            return _abort(wire, agent_id, code)
        if reply.error != ErrorCode.SUCCESS or not reply.task_id or reply.task_id < 0:
            return _abort(wire, agent_id, ErrorCode.DATABASE_ERROR)

        response.append(data_entry(ErrorCode.SUCCESS, agent_id, reply.task_id))

    logger.info("%s: created %d task(s) node=%s", wire, len(response), request.node)
    return response, ErrorCode.SUCCESS


def cmd_upgrade_get_status(store: TaskStore, request: UpgradeGetStatusRequest) -> BatchResult:
    wire = WIRE_NAMES[CommandTag.UPGRADE_GET_STATUS]
    response: list[Entry] = []

    for agent_id in request.agent_ids:
        params = {"agent": agent_id, "node": request.node}
        reply, code = store.call(wire, params, StatusReply.from_payload)
        if reply is None:
            return _abort(wire, agent_id, code)
        if reply.error not in _SOFT_CODES:
            return _abort(wire, agent_id, ErrorCode.DATABASE_ERROR)

        response.append(data_entry(reply.error, agent_id, None, reply.status))

    return response, ErrorCode.SUCCESS


def cmd_upgrade_update_status(store: TaskStore, request: UpgradeUpdateStatusRequest) -> BatchResult:
    wire = WIRE_NAMES[CommandTag.UPGRADE_UPDATE_STATUS]
    response: list[Entry] = []

    for agent_id in request.agent_ids:
        params: dict[str, object] = {
            "agent": agent_id,
            "node": request.node,
            "status": request.status,
        }
        if request.error_message:
            params["message"] = request.error_message

        reply, code = store.call(wire, params, AckReply.from_payload)
        if reply is None:
            return _abort(wire, agent_id, code)
        if reply.error not in _SOFT_CODES:
            return _abort(wire, agent_id, ErrorCode.DATABASE_ERROR)

        response.append(data_entry(reply.error, agent_id, None, request.status))

    logger.info("%s: %d agent(s) -> %s node=%s", wire, len(response), request.status, request.node)
    return response, ErrorCode.SUCCESS


def cmd_upgrade_result(store: TaskStore, request: UpgradeResultRequest) -> BatchResult:
    wire = WIRE_NAMES[CommandTag.UPGRADE_RESULT]
    response: list[Entry] = []

    for agent_id in request.agent_ids:
        decode = partial(TaskRecordReply.from_payload, agent_id=agent_id)
        reply, code = store.call(wire, {"agent": agent_id}, decode)
        if reply is None:
            return _abort(wire, agent_id, code)
        if reply.error not in _SOFT_CODES:
            return _abort(wire, agent_id, ErrorCode.DATABASE_ERROR)

        if reply.task is None:
            response.append(data_entry(ErrorCode.DATABASE_NO_TASK, agent_id))
            continue

        entry = data_entry(ErrorCode.SUCCESS, agent_id, reply.task.task_id)
        response.append(with_task_detail(entry, reply.task))

    return response, ErrorCode.SUCCESS


def cmd_upgrade_cancel_tasks(store: TaskStore, request: UpgradeCancelTasksRequest) -> SingleResult:
    """One RPC for the whole node; the store decides which tasks are pending."""
    wire = WIRE_NAMES[CommandTag.UPGRADE_CANCEL_TASKS]

    reply, code = store.call(wire, {"node": request.node}, AckReply.from_payload)
    if reply is None:
        logger.warning("%s failed node=%s: %s", wire, request.node, code.message)
        return None, code
    if reply.error != ErrorCode.SUCCESS:
        logger.warning("%s rejected node=%s error=%s", wire, request.node, reply.error)
        return None, ErrorCode.DATABASE_ERROR

    logger.info("%s: pending tasks cancelled node=%s", wire, request.node)
    return data_entry(ErrorCode.SUCCESS), ErrorCode.SUCCESS
