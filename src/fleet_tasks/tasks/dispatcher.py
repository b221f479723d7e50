# src/fleet_tasks/tasks/dispatcher.py

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ..core.ports import TaskStore
from .handlers import (
    cmd_upgrade,
    cmd_upgrade_cancel_tasks,
    cmd_upgrade_get_status,
    cmd_upgrade_result,
    cmd_upgrade_update_status,
)
from .task_models import INTERNAL_TAGS, CommandRequest, CommandTag, ErrorCode

CommandHandler = Callable[[TaskStore, Any], tuple[Any, ErrorCode]]

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Routes a typed request to the handler registered for its command tag."""

    def __init__(self, store: TaskStore) -> None:
        self._store = store
        self._handlers: dict[CommandTag, CommandHandler] = {}

    def register(self, tag: CommandTag, handler: CommandHandler) -> None:
        if tag in INTERNAL_TAGS:
            raise ValueError(f"{tag} is reserved for the reaper")
        self._handlers[tag] = handler

    @property
    def tags(self) -> frozenset[CommandTag]:
        return frozenset(self._handlers)

    def dispatch(self, tag: str, request: CommandRequest) -> tuple[Any, ErrorCode]:
        """
        Run the handler for `tag`.

        Returns (response, code). Unknown tags (including the reaper-only ones)
        give (None, INVALID_COMMAND) and touch nothing.
        """
        handler = self._handlers.get(tag)
        if handler is None:
            logger.warning("Unknown command tag: %r", tag)
            return None, ErrorCode.INVALID_COMMAND

        return handler(self._store, request)


def build_dispatcher(store: TaskStore) -> CommandDispatcher:
    dispatcher = CommandDispatcher(store)
    dispatcher.register(CommandTag.UPGRADE, cmd_upgrade)
    dispatcher.register(CommandTag.UPGRADE_CUSTOM, cmd_upgrade)
    dispatcher.register(CommandTag.UPGRADE_GET_STATUS, cmd_upgrade_get_status)
    dispatcher.register(CommandTag.UPGRADE_UPDATE_STATUS, cmd_upgrade_update_status)
    dispatcher.register(CommandTag.UPGRADE_RESULT, cmd_upgrade_result)
    dispatcher.register(CommandTag.UPGRADE_CANCEL_TASKS, cmd_upgrade_cancel_tasks)
    return dispatcher
