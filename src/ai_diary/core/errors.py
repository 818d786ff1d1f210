# src/ai_diary/core/errors.py

"""
Error kinds surfaced by the task subsystem.

Every store operation either succeeds or raises one of these, leaving the
local cache unchanged. Nothing here is retried automatically; the caller
(console / UI layer) decides what to show.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class TaskError(RuntimeError):
    """Base class carrying a message plus optional structured details."""

    def __init__(self, message: str, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = dict(details or {})


class RemoteUnavailable(TaskError):
    """Network, auth or backend failure talking to the remote store."""


class NotFound(TaskError):
    """The entity vanished remotely between local knowledge and the call."""


class ValidationRejected(TaskError):
    """Input violates a constraint (remote-side, or the local title check)."""


class InvalidLocalState(TaskError):
    """Precondition failure: unknown local id, wrong picker mode, nothing pending."""


def friendly_task_error_message(err: Exception) -> str:
    if isinstance(err, RemoteUnavailable):
        return f"Task service is unavailable right now ({err.message}). Try again later."
    if isinstance(err, NotFound):
        return "That task no longer exists on the server. Use /reload to refresh."
    if isinstance(err, ValidationRejected):
        return f"Rejected: {err.message}"
    if isinstance(err, InvalidLocalState):
        return f"Not possible here: {err.message}"
    return str(err).strip() or "Task error."
