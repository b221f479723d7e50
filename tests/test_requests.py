# tests/test_requests.py

from __future__ import annotations

import json

import pytest

from fleet_tasks.tasks.dispatcher import build_dispatcher
from fleet_tasks.tasks.requests import RequestError, parse_request
from fleet_tasks.tasks.task_api import process_message
from fleet_tasks.tasks.task_models import (
    CommandTag,
    ErrorCode,
    UpgradeCancelTasksRequest,
    UpgradeGetStatusRequest,
    UpgradeRequest,
    UpgradeResultRequest,
    UpgradeUpdateStatusRequest,
)

from .fakes import ScriptedConnections, ok


def _msg(command, *, origin=None, **params) -> str:
    if origin is None:
        origin = {"name": "node01", "module": "upgrade_module"}
    return json.dumps({"origin": origin, "command": command, "parameters": params})


def test_parse_upgrade() -> None:
    tag, request = parse_request(_msg("upgrade-custom", agents=[1, 2, 3]))
    assert tag is CommandTag.UPGRADE_CUSTOM
    assert request == UpgradeRequest(
        agent_ids=(1, 2, 3), node="node01", module="upgrade_module", command=CommandTag.UPGRADE_CUSTOM
    )


def test_parse_each_command_shape() -> None:
    assert parse_request(_msg("upgrade-get-status", agents=[4]))[1] == UpgradeGetStatusRequest((4,), "node01")
    assert parse_request(_msg("upgrade-result", origin={}, agents=[4]))[1] == UpgradeResultRequest((4,))
    assert parse_request(_msg("upgrade-cancel-tasks"))[1] == UpgradeCancelTasksRequest("node01")

    _, update = parse_request(_msg("upgrade-update-status", agents=[4], status="error", error_msg="boom"))
    assert update == UpgradeUpdateStatusRequest((4,), "node01", "error", "boom")


def test_parse_accepts_empty_agent_list() -> None:
    _, request = parse_request(_msg("upgrade", agents=[]))
    assert request.agent_ids == ()


@pytest.mark.parametrize(
    ("text", "code"),
    [
        ("{broken", ErrorCode.INVALID_MESSAGE),
        ("[1, 2]", ErrorCode.INVALID_MESSAGE),
        (json.dumps({"command": "upgrade", "parameters": {"agents": [1]}}), ErrorCode.INVALID_MESSAGE),
        (_msg("upgrade", origin={"module": "m"}, agents=[1]), ErrorCode.INVALID_NODE),
        (_msg("upgrade", origin={"name": "  "}, agents=[1]), ErrorCode.INVALID_NODE),
        (_msg("upgrade", origin={"name": "n"}, agents=[1]), ErrorCode.INVALID_MODULE),
        (_msg("reboot", agents=[1]), ErrorCode.INVALID_COMMAND),
        (_msg("set-timeout"), ErrorCode.INVALID_COMMAND),
        (_msg(7), ErrorCode.INVALID_COMMAND),
        (_msg("upgrade", agents="1,2"), ErrorCode.INVALID_AGENTS),
        (_msg("upgrade-result"), ErrorCode.INVALID_AGENTS),
        (_msg("upgrade", agents=[1, "2"]), ErrorCode.INVALID_AGENT_ID),
        (_msg("upgrade", agents=[1, -1]), ErrorCode.INVALID_AGENT_ID),
        (_msg("upgrade", agents=[True]), ErrorCode.INVALID_AGENT_ID),
        (_msg("upgrade-update-status", agents=[1], status="exploded"), ErrorCode.INVALID_STATUS),
        (_msg("upgrade-update-status", agents=[1]), ErrorCode.INVALID_STATUS),
    ],
)
def test_parse_rejects_bad_messages(text: str, code: ErrorCode) -> None:
    with pytest.raises(RequestError) as exc:
        parse_request(text)
    assert exc.value.code == code


# ---- parse -> dispatch -> envelope ----


def test_process_message_wraps_batch(store, connections: ScriptedConnections) -> None:
    connections.replies = [ok({"error": 0, "task_id": 10}), ok({"error": 0, "task_id": 11})]

    reply = process_message(build_dispatcher(store), _msg("upgrade", agents=[5, 7]))

    assert reply["error"] == 0
    assert reply["message"] == "Success"
    assert [(e["agent"], e["task_id"]) for e in reply["data"]] == [(5, 10), (7, 11)]


def test_process_message_wraps_single_cancel_entry(store, connections: ScriptedConnections) -> None:
    connections.replies = [ok({"error": 0})]
    reply = process_message(build_dispatcher(store), _msg("upgrade-cancel-tasks"))
    assert reply == {"error": 0, "message": "Success", "data": [{"error": 0, "message": "Success"}]}


def test_process_message_reports_aggregate_failure(store, connections: ScriptedConnections) -> None:
    connections.replies = [ok({"error": 0, "task_id": 1}), ConnectionRefusedError()]
    reply = process_message(build_dispatcher(store), _msg("upgrade", agents=[1, 2, 3]))
    assert reply == {"error": 10, "message": "Database error", "data": []}


def test_process_message_reports_validation_error(store) -> None:
    reply = process_message(build_dispatcher(store), "not json")
    assert reply == {"error": 1, "message": "Invalid message", "data": []}


def test_process_message_survives_crashing_handler(store) -> None:
    dispatcher = build_dispatcher(store)

    def boom(_store, _request):
        raise RuntimeError("bug")

    dispatcher.register(CommandTag.UPGRADE_RESULT, boom)

    reply = process_message(dispatcher, _msg("upgrade-result", agents=[1]))
    assert reply["error"] == ErrorCode.UNKNOWN_ERROR
