# src/fleet_tasks/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs in a background thread:
- the request listener (optional),
- the task reaper (optional).
The main thread only waits for SIGINT/SIGTERM.
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state, create_reaper
from ..config import get_settings
from ..connectors.socket_server import start_service_in_background
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)
    reaper = create_reaper(state) if settings.reaper_enabled else None

    runner = start_service_in_background(state, reaper)
    if runner is None:
        return 1

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        # wake up periodically so a dead service thread ends the process too
        while not stop_main.wait(timeout=1.0):
            if not runner.thread.is_alive():
                logger.error("Task service thread exited unexpectedly.")
                break
    finally:
        runner.stop()
        runner.join(timeout=10.0)
        logger.info("Bye.")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
