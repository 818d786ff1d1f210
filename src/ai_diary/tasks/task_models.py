# src/ai_diary/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from ..core.errors import ValidationRejected


class TaskStatus(StrEnum):
    """Task lifecycle status. Only ever toggles between the two values."""

    ACTIVE = "active"
    COMPLETED = "completed"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.ACTIVE
        try:
            return cls(raw)
        except ValueError:
            return cls.ACTIVE

    def toggled(self) -> TaskStatus:
        return TaskStatus.COMPLETED if self is TaskStatus.ACTIVE else TaskStatus.ACTIVE


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    title: str
    status: TaskStatus
    owner_id: str
    created_at: datetime

    description: str | None = None
    deadline: datetime | None = None

    def is_due(self, now: datetime) -> bool:
        """A task without a deadline is never due. Naive values are read as local time."""
        if self.deadline is None:
            return False
        deadline = self.deadline
        if deadline.tzinfo is None:
            deadline = deadline.astimezone()
        if now.tzinfo is None:
            now = now.astimezone()
        return deadline <= now

    def is_overdue(self, now: datetime) -> bool:
        return self.status is TaskStatus.ACTIVE and self.is_due(now)


def normalize_title(title: str | None) -> str:
    clean = (title or "").strip()
    if not clean:
        raise ValidationRejected("title is required")
    return clean


def normalize_description(description: str | None) -> str | None:
    clean = (description or "").strip()
    return clean or None


# ---- wire codec (PostgREST rows) ----


def parse_instant(raw: Any) -> datetime | None:
    """
    Parse an ISO-8601 instant as returned by the remote store.

    Naive values are treated as UTC; a trailing "Z" is accepted.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        dt = raw
    else:
        try:
            dt = datetime.fromisoformat(str(raw).strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise ValidationRejected(f"bad timestamp: {raw!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def format_instant(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt.astimezone(UTC).isoformat()


def task_from_row(row: Mapping[str, Any]) -> Task:
    try:
        task_id = row["id"]
        owner_id = row["user_id"]
        created_raw = row["created_at"]
    except KeyError as e:
        raise ValidationRejected(f"task row is missing {e.args[0]!r}") from e

    created_at = parse_instant(created_raw)
    if created_at is None:
        raise ValidationRejected("task row has empty created_at")

    return Task(
        id=str(task_id),
        title=str(row.get("title") or ""),
        status=TaskStatus.from_db(row.get("status")),
        owner_id=str(owner_id),
        created_at=created_at,
        description=normalize_description(row.get("description")),
        deadline=parse_instant(row.get("deadline")),
    )


def task_to_row(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "deadline": format_instant(task.deadline),
        "user_id": task.owner_id,
        "created_at": format_instant(task.created_at),
    }
