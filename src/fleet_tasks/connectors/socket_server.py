# src/fleet_tasks/connectors/socket_server.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from ..core.framing import FramingError, read_frame, write_frame
from ..core.state import AppState
from ..tasks.task_api import process_message
from ..tasks.task_reaper import TaskReaper

logger = logging.getLogger(__name__)


async def _handle_client(state: AppState, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
    """Serve framed requests on one connection until the peer hangs up."""
    try:
        while True:
            text = await read_frame(reader)
            if text is None:
                return

            # dispatch blocks on store round trips
            reply = await asyncio.to_thread(process_message, state.dispatcher, text)
            await write_frame(writer, json.dumps(reply, ensure_ascii=False, separators=(",", ":")))

    except FramingError as e:
        logger.warning("Dropping client: %s", e)
    except ConnectionError:
        logger.debug("Client connection closed.", exc_info=True)
    finally:
        writer.close()
        with contextlib.suppress(Exception):
            await writer.wait_closed()


def _unlink_stale(path: Path) -> None:
    with contextlib.suppress(FileNotFoundError):
        path.unlink()


async def serve_requests(state: AppState, stop_event: asyncio.Event) -> None:
    """
    Unix-socket request listener.

    Removes a stale socket file on start and the live one on stop.
    Returns once stop_event is set.
    """
    path = Path(state.settings.listen_socket_path)
    _unlink_stale(path)

    server = await asyncio.start_unix_server(
        lambda r, w: _handle_client(state, r, w),
        path=str(path),
    )
    logger.info("Listening for task requests on %s", path)

    try:
        await stop_event.wait()
    finally:
        # don't wait for idle clients to hang up
        server.close()
        _unlink_stale(path)
        logger.info("Request listener stopped.")


async def _run_service(state: AppState, reaper: TaskReaper | None, stop_event: asyncio.Event) -> None:
    """
    Run listener + reaper on one loop until stop_event is set.

    The reaper is cancelled on shutdown; it has no other exit.
    """
    reaper_task: asyncio.Task[None] | None = None
    if reaper is not None:
        reaper_task = asyncio.create_task(reaper.run())
        logger.info("Task reaper started.")

    try:
        if state.settings.listen_enabled:
            await serve_requests(state, stop_event)
        else:
            await stop_event.wait()
    except Exception:
        logger.exception("Task service crashed.")
    finally:
        if reaper_task is not None:
            reaper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reaper_task
        logger.info("Task service stopped.")


@dataclass
class ServiceRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal service stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_service_in_background(state: AppState, reaper: TaskReaper | None) -> ServiceRunner | None:
    """
    Start the listener and the reaper in a background thread with its own event loop.

    The main thread stays free for signal handling.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_service(state, reaper, stop_event))
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, daemon=True, name="TaskService")
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Service thread did not initialize properly.")
        return None

    logger.info("Task service thread started.")
    return ServiceRunner(thread=t, loop=loop, stop_event=stop_event)
