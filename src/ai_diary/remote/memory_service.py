# src/ai_diary/remote/memory_service.py

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from ..core.errors import NotFound, TaskError, ValidationRejected
from ..core.ports import Clock
from ..tasks.task_models import Task, TaskStatus

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class InMemoryTaskService:
    """
    Offline RemoteTaskService used for demos when no backend is configured.

    Behaves like the real store where it matters to the client:
    - ids and created_at are assigned here, never by the caller
    - list_tasks returns newest first
    - blank titles are rejected, unknown ids raise NotFound

    fail_next(exc) makes the next call raise `exc` once.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        self._clock = clock or _utc_now
        self._rows: dict[str, Task] = {}
        self._failures: list[TaskError] = []

    def fail_next(self, exc: TaskError) -> None:
        self._failures.append(exc)

    def _maybe_fail(self) -> None:
        if self._failures:
            raise self._failures.pop(0)

    async def list_tasks(self, owner_id: str) -> list[Task]:
        self._maybe_fail()
        owned = [t for t in self._rows.values() if t.owner_id == owner_id]
        owned.sort(key=lambda t: t.created_at, reverse=True)
        return owned

    async def insert_task(
        self,
        owner_id: str,
        *,
        title: str,
        description: str | None = None,
        deadline: datetime | None = None,
    ) -> Task:
        self._maybe_fail()
        if not title or not title.strip():
            raise ValidationRejected("title must not be empty")

        task = Task(
            id=str(uuid.uuid4()),
            title=title,
            status=TaskStatus.ACTIVE,
            owner_id=owner_id,
            created_at=self._clock(),
            description=description,
            deadline=deadline,
        )
        self._rows[task.id] = task
        logger.debug("In-memory insert id=%s owner=%s", task.id, owner_id)
        return task

    async def update_task(self, task_id: str, fields: Mapping[str, Any]) -> None:
        self._maybe_fail()
        task = self._rows.get(task_id)
        if task is None:
            raise NotFound(f"task {task_id} does not exist", {"task_id": task_id})

        changes = dict(fields)
        unknown = set(changes) - {"title", "description", "deadline", "status"}
        if unknown:
            raise ValidationRejected(f"fields cannot be updated: {', '.join(sorted(unknown))}")
        if "title" in changes and not str(changes["title"] or "").strip():
            raise ValidationRejected("title must not be empty")
        if "status" in changes:
            try:
                changes["status"] = TaskStatus(changes["status"])
            except ValueError as e:
                raise ValidationRejected(f"bad status: {changes['status']!r}") from e

        self._rows[task_id] = replace(task, **changes)

    async def delete_task(self, task_id: str) -> None:
        self._maybe_fail()
        if self._rows.pop(task_id, None) is None:
            raise NotFound(f"task {task_id} does not exist", {"task_id": task_id})

    async def aclose(self) -> None:
        return
