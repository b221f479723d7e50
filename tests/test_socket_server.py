# tests/test_socket_server.py

from __future__ import annotations

import asyncio
import json

import pytest

from fleet_tasks.connectors.socket_server import serve_requests
from fleet_tasks.core.framing import read_frame, write_frame

from .fakes import ScriptedConnections, ok


async def _wait_for_socket(path, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not path.exists():
        if loop.time() > deadline:
            raise TimeoutError(f"listener did not bind {path}")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_listener_answers_framed_requests(state, connections: ScriptedConnections) -> None:
    connections.replies = [ok({"error": 0, "task_id": 10}), ok({"error": 0, "task_id": 11})]
    stop_event = asyncio.Event()
    server = asyncio.create_task(serve_requests(state, stop_event))

    path = state.settings.listen_socket_path
    await _wait_for_socket(path)

    reader, writer = await asyncio.open_unix_connection(str(path))
    request = {
        "origin": {"name": "node01", "module": "upgrade_module"},
        "command": "upgrade",
        "parameters": {"agents": [5, 7]},
    }
    await write_frame(writer, json.dumps(request))
    first = json.loads(await read_frame(reader))

    await write_frame(writer, "garbage")
    second = json.loads(await read_frame(reader))

    writer.close()
    await writer.wait_closed()

    stop_event.set()
    await asyncio.wait_for(server, timeout=2.0)

    assert first["error"] == 0
    assert [e["task_id"] for e in first["data"]] == [10, 11]
    assert second == {"error": 1, "message": "Invalid message", "data": []}
    assert not path.exists()
