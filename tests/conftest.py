# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from ai_diary.cli.bootstrap import create_initial_state
from ai_diary.core.state import AppState
from ai_diary.tasks.task_store import TaskStore

from .fakes import FakeRemoteTaskService


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI layer.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="ai-diary-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        supabase_url="",
        supabase_anon_key=None,
        access_token=None,
        tasks_table="tasks",
        remote_connect_timeout_seconds=1.0,
        remote_read_timeout_seconds=1.0,
        user_id="u1",
        offline=True,
    )


@pytest.fixture()
def remote() -> FakeRemoteTaskService:
    return FakeRemoteTaskService()


@pytest.fixture()
def store(remote: FakeRemoteTaskService) -> TaskStore:
    return TaskStore(remote)


@pytest.fixture()
def state(settings: SimpleNamespace, remote: FakeRemoteTaskService) -> AppState:
    """AppState wired with the scriptable fake remote."""
    return create_initial_state(settings=settings, remote=remote)
