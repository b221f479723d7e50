# src/fleet_tasks/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..config import Settings
from ..tasks.dispatcher import CommandDispatcher
from ..tasks.store_client import TaskStoreClient


@dataclass
class AppState:
    settings: Settings
    store: TaskStoreClient
    dispatcher: CommandDispatcher
