# src/fleet_tasks/tasks/task_reaper.py

from __future__ import annotations

"""
Task reaper.

A small deadline-driven loop that:
- marks in-progress tasks as timed out (set-timeout),
- deletes task records older than the retention age (delete-old).

The two sweeps have independent deadlines. The store is authoritative for the
next timeout sweep: when it answers with a `timestamp`, that value wins over
`now + task_timeout`. The cleanup interval is fixed.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ..core.ports import TaskStore
from .task_models import WIRE_NAMES, AckReply, CommandTag, ErrorCode, TimeoutReply

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(slots=True)
class ReaperDeadlines:
    next_timeout_at: int
    next_clean_at: int

    @property
    def wake_at(self) -> int:
        return min(self.next_timeout_at, self.next_clean_at)


class TaskReaper:
    def __init__(
            self,
            store: TaskStore,
            *,
            task_timeout: int,
            cleanup_retention: int,
            cleanup_poll_interval: int,
            clock: Clock = time.time,
    ) -> None:
        self._store = store
        self._task_timeout = int(task_timeout)
        self._cleanup_retention = int(cleanup_retention)
        self._cleanup_poll_interval = int(cleanup_poll_interval)
        self._clock = clock

        now = int(clock())
        self.deadlines = ReaperDeadlines(next_timeout_at=now, next_clean_at=now)

    def sweep(self, now: int) -> int:
        """Run whichever sweeps are due at `now`; return the next wake-up time."""
        if now >= self.deadlines.next_timeout_at:
            self.deadlines.next_timeout_at = self._sweep_timeouts(now)

        if now >= self.deadlines.next_clean_at:
            self._sweep_old_tasks(now)
            self.deadlines.next_clean_at = now + self._cleanup_poll_interval

        return self.deadlines.wake_at

    def _sweep_timeouts(self, now: int) -> int:
        wire = WIRE_NAMES[CommandTag.SET_TIMEOUT]
        next_timeout = now + self._task_timeout

        params = {"now": now, "timestamp": self._task_timeout}
        reply, code = self._store.call(wire, params, TimeoutReply.from_payload)
        if reply is None:
            logger.warning("Timeout sweep failed: %s", code.message)
            return next_timeout

        if reply.error == ErrorCode.SUCCESS and reply.next_timeout is not None:
            next_timeout = reply.next_timeout

        logger.debug("Timeout sweep done; next at %s", next_timeout)
        return next_timeout

    def _sweep_old_tasks(self, now: int) -> None:
        wire = WIRE_NAMES[CommandTag.DELETE_OLD]
        cutoff = now - self._cleanup_retention

        reply, code = self._store.call(wire, {"timestamp": cutoff}, AckReply.from_payload)
        if reply is None:
            logger.warning("Cleanup sweep failed: %s", code.message)
            return
        logger.info("Deleted task records older than %s (error=%s)", cutoff, reply.error)

    async def run(self, *, sleep: Sleep = asyncio.sleep, once: bool = False) -> None:
        """
        Loop until cancelled.

        Each iteration runs the due sweeps in a worker thread (store calls block),
        then sleeps until the nearest deadline. `once=True` stops after one
        iteration (tests).
        """
        while True:
            now = int(self._clock())
            try:
                wake_at = await asyncio.to_thread(self.sweep, now)
            except Exception:
                logger.exception("Reaper iteration crashed")
                # deadlines may not have advanced; don't spin
                wake_at = max(self.deadlines.wake_at, now + 1)

            await sleep(max(0.0, wake_at - self._clock()))

            if once:
                return
