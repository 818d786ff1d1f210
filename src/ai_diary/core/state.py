# src/ai_diary/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field

from ..tasks.task_store import TaskStore
from .ports import RemoteTaskService


@dataclass
class AppState:
    # Settings object (config.Settings or a test SimpleNamespace).
    settings: object

    remote: RemoteTaskService
    task_store: TaskStore

    # Owner id of the signed-in user; passed explicitly into every store call.
    user_id: str

    # Task ids in the order the last /tasks listing printed them (1-based in the UI).
    last_listing: list[str] = field(default_factory=list)
