# src/ai_diary/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task store depends on a Protocol instead of a concrete backend, so the
HTTP service, the in-memory service and test fakes are interchangeable.
"""

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import Task

TaskSnapshot = tuple["Task", ...]
TaskListener = Callable[[TaskSnapshot], None]
Clock = Callable[[], datetime]


class RemoteTaskService(Protocol):
    """
    Request/response contract of the remote record store.

    Failures are raised as core.errors exceptions:
    - list_tasks:  RemoteUnavailable
    - insert_task: RemoteUnavailable, ValidationRejected
    - update_task: RemoteUnavailable, NotFound
    - delete_task: RemoteUnavailable, NotFound
    """

    async def list_tasks(self, owner_id: str) -> list[Task]: ...

    async def insert_task(
            self,
            owner_id: str,
            *,
            title: str,
            description: str | None = None,
            deadline: datetime | None = None,
    ) -> Task: ...

    async def update_task(self, task_id: str, fields: Mapping[str, Any]) -> None: ...

    async def delete_task(self, task_id: str) -> None: ...

    async def aclose(self) -> None: ...
