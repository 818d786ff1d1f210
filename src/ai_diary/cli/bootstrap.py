# src/ai_diary/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- picks the remote task backend (PostgREST or in-memory),
- wires it into a TaskStore inside AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import RemoteTaskService
from ..core.state import AppState
from ..remote.memory_service import InMemoryTaskService
from ..remote.rest_service import RestTaskService
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def _build_remote(settings) -> RemoteTaskService:
    if getattr(settings, "offline", True):
        logger.info("No task backend configured; using the in-memory task service.")
        return InMemoryTaskService()

    try:
        remote = RestTaskService.from_settings(settings)
    except ValueError:
        # Fallback for demos / local runs without external services.
        logger.warning("Task backend settings are incomplete; using the in-memory task service.")
        return InMemoryTaskService()

    logger.info("Task backend: %s (table=%s)", settings.supabase_url, settings.tasks_table)
    return remote


def create_initial_state(*, settings=None, remote: RemoteTaskService | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the remote) injectable makes the app easier to test and
    avoids hidden global config reads. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if remote is None:
        remote = _build_remote(settings)

    return AppState(
        settings=settings,
        remote=remote,
        task_store=TaskStore(remote),
        user_id=settings.user_id,
    )
