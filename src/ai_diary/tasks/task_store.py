# src/ai_diary/tasks/task_store.py

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import replace
from datetime import datetime
from typing import TypeVar

from ..core.errors import InvalidLocalState, RemoteUnavailable, TaskError
from ..core.ports import RemoteTaskService, TaskListener, TaskSnapshot
from .task_models import Task, TaskStatus, normalize_description, normalize_title

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskStore:
    """
    In-memory task cache kept in sync with a RemoteTaskService.

    Rules:
    - the cache is written only after the matching remote call succeeded
      (nothing is optimistic, so nothing ever needs rolling back)
    - every failure propagates to the caller with the cache untouched
    - mutations of the same task id are serialized by a per-id lock;
      different ids resolve in completion order
    - load() is not serialized with mutations: it installs whatever the
      remote returned at call time

    Observers subscribe() and receive a fresh snapshot after each change.
    """

    def __init__(self, remote: RemoteTaskService) -> None:
        self._remote = remote
        self._tasks: list[Task] = []
        self._listeners: list[TaskListener] = []
        self._locks: dict[str, asyncio.Lock] = {}

    # ---- read side ----

    @property
    def tasks(self) -> TaskSnapshot:
        return tuple(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: str) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def active(self) -> list[Task]:
        return [t for t in self._tasks if t.status is TaskStatus.ACTIVE]

    def completed(self) -> list[Task]:
        return [t for t in self._tasks if t.status is TaskStatus.COMPLETED]

    def due(self, now: datetime) -> list[Task]:
        """Active tasks whose deadline is at or before `now`."""
        return [t for t in self._tasks if t.is_overdue(now)]

    # ---- observation ----

    def subscribe(self, listener: TaskListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        snapshot = self.tasks
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Task listener failed")

    # ---- low-level helpers ----

    def _lock_for(self, task_id: str) -> asyncio.Lock:
        lock = self._locks.get(task_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[task_id] = lock
        return lock

    def _prune_locks(self) -> None:
        known = {t.id for t in self._tasks}
        for task_id, lock in list(self._locks.items()):
            if task_id not in known and not lock.locked():
                del self._locks[task_id]

    @contextlib.asynccontextmanager
    async def _task_lock(self, owner_id: str, task_id: str) -> AsyncIterator[Task]:
        """
        Hold the per-id lock and yield the cached task.

        The id is checked before a lock is created and again once it is held,
        since an earlier holder may have removed the entry meanwhile.
        """
        self._require_local(owner_id, task_id)
        lock = self._lock_for(task_id)
        try:
            async with lock:
                yield self._require_local(owner_id, task_id)
        finally:
            if self._locks.get(task_id) is lock and self.get(task_id) is None:
                del self._locks[task_id]

    @staticmethod
    def _require_owner(owner_id: str) -> str:
        if not owner_id or not owner_id.strip():
            raise InvalidLocalState("owner id is required")
        return owner_id

    def _require_local(self, owner_id: str, task_id: str) -> Task:
        self._require_owner(owner_id)
        task = self.get(task_id)
        if task is None:
            raise InvalidLocalState(f"unknown task id {task_id}", {"task_id": task_id})
        if task.owner_id != owner_id:
            raise InvalidLocalState(
                f"task {task_id} is not owned by {owner_id}",
                {"task_id": task_id, "owner_id": owner_id},
            )
        return task

    async def _remote_call(self, op: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except TaskError as e:
            logger.warning("Remote %s failed (%s): %s", op, e.__class__.__name__, e.message)
            raise
        except Exception as e:
            logger.exception("Remote %s crashed", op)
            raise RemoteUnavailable(f"{op} failed: {e.__class__.__name__}") from e

    def _apply(self, task_id: str, change: Callable[[Task], Task]) -> Task | None:
        """Replace the cached entry for task_id in place; None if it is gone."""
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                updated = change(task)
                self._tasks[i] = updated
                self._notify()
                return updated
        logger.debug("Task %s left the cache before its update resolved", task_id)
        return None

    # ---- public API ----

    async def load(self, owner_id: str) -> TaskSnapshot:
        """
        Replace the whole cache with the owner's remote tasks.

        Order is kept exactly as returned (creation instant, newest first).
        On failure the previous cache stays as it was.
        """
        self._require_owner(owner_id)
        fetched = await self._remote_call("list_tasks", self._remote.list_tasks(owner_id))

        self._tasks = list(fetched)
        self._prune_locks()
        logger.info("Tasks loaded owner=%s total=%d", owner_id, len(self._tasks))
        self._notify()
        return self.tasks

    async def create(
        self,
        owner_id: str,
        title: str,
        description: str | None = None,
        deadline: datetime | None = None,
    ) -> Task:
        self._require_owner(owner_id)
        clean_title = normalize_title(title)
        clean_description = normalize_description(description)

        created = await self._remote_call(
            "insert_task",
            self._remote.insert_task(
                owner_id,
                title=clean_title,
                description=clean_description,
                deadline=deadline,
            ),
        )

        # A load() racing this insert may already have picked the row up.
        self._tasks = [created, *(t for t in self._tasks if t.id != created.id)]
        logger.debug("Task created id=%s deadline=%s", created.id, created.deadline)
        self._notify()
        return created

    async def update(
        self,
        owner_id: str,
        task_id: str,
        title: str,
        description: str | None = None,
        deadline: datetime | None = None,
    ) -> Task:
        """Replace title/description/deadline. An absent deadline clears it."""
        async with self._task_lock(owner_id, task_id) as current:
            clean_title = normalize_title(title)
            clean_description = normalize_description(description)

            await self._remote_call(
                "update_task",
                self._remote.update_task(
                    task_id,
                    {
                        "title": clean_title,
                        "description": clean_description,
                        "deadline": deadline,
                    },
                ),
            )

            def change(task: Task) -> Task:
                return replace(
                    task, title=clean_title, description=clean_description, deadline=deadline
                )

            updated = self._apply(task_id, change)
            logger.debug("Task updated id=%s", task_id)
            return updated if updated is not None else change(current)

    async def toggle_status(self, owner_id: str, task_id: str) -> Task:
        """
        Flip active <-> completed.

        The status is read from the cache under the per-id lock, i.e. after
        any earlier mutation of the same task resolved, so two quick toggles
        always end where they started.
        """
        async with self._task_lock(owner_id, task_id) as current:
            new_status = current.status.toggled()

            await self._remote_call(
                "update_task", self._remote.update_task(task_id, {"status": new_status})
            )

            def change(task: Task) -> Task:
                return replace(task, status=new_status)

            updated = self._apply(task_id, change)
            logger.debug("Task %s -> %s", task_id, new_status.value)
            return updated if updated is not None else change(current)

    async def delete(self, owner_id: str, task_id: str) -> None:
        async with self._task_lock(owner_id, task_id):
            await self._remote_call("delete_task", self._remote.delete_task(task_id))

            remaining = [t for t in self._tasks if t.id != task_id]
            changed = len(remaining) != len(self._tasks)
            self._tasks = remaining
            logger.debug("Task deleted id=%s", task_id)
            if changed:
                self._notify()
