# tests/test_commands.py

from __future__ import annotations

import pytest

from ai_diary.cli.commands import CommandRegistry, parse_task_args
from ai_diary.cli.commands import registry as default_registry
from ai_diary.core.errors import RemoteUnavailable
from ai_diary.tasks.task_models import TaskStatus

from .fakes import FakeRemoteTaskService, make_task


@pytest.mark.asyncio
async def test_command_registry_routes_3_and_4_params(state) -> None:
    reg = CommandRegistry()
    called = {"h3": 0, "h4": 0}

    def h3(state, args, user_id):
        called["h3"] += 1
        return f"h3:{user_id}"

    async def h4(state, args, user_id, emit):
        called["h4"] += 1
        if emit is not None:
            emit("note")
        return "h4"

    reg.register("a", h3, "a")
    reg.register("b", h4, "b")

    assert await reg.handle(state, "/a x") == "h3:u1"
    assert await reg.handle(state, "/a x", user_id="u9") == "h3:u9"
    assert await reg.handle(state, "/b y", emit=lambda _: None) == "h4"
    assert called == {"h3": 2, "h4": 1}


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")
    assert "Empty command" in (await reg.handle(state, "/") or "")


@pytest.mark.asyncio
async def test_task_errors_become_messages(state, remote: FakeRemoteTaskService) -> None:
    remote.fail_next("list_tasks", RemoteUnavailable("503"))

    reply = await default_registry.handle(state, "/reload")

    assert reply is not None
    assert "unavailable" in reply


def test_parse_task_args() -> None:
    parsed = parse_task_args(
        "Buy milk | two litres --date 2099-05-01 --time 08:30".split()
    )
    assert parsed.title == "Buy milk"
    assert parsed.description == "two litres"
    assert parsed.date_raw == "2099-05-01"
    assert parsed.time_raw == "08:30"
    assert parsed.no_deadline is False

    bare = parse_task_args(["Call", "mom", "--no-deadline"])
    assert bare.title == "Call mom"
    assert bare.description is None
    assert bare.no_deadline is True


@pytest.mark.asyncio
async def test_add_list_toggle_remove_flow(state) -> None:
    reply = await default_registry.handle(
        state, "/add Buy milk | two litres --date 2099-05-01 --time 08:30"
    )
    assert reply is not None and reply.startswith("Added: Buy milk")

    (task,) = state.task_store.tasks
    assert task.description == "two litres"
    assert task.deadline is not None
    assert task.deadline.astimezone().strftime("%Y-%m-%d %H:%M") == "2099-05-01 08:30"

    listing = await default_registry.handle(state, "/tasks")
    assert listing is not None and "1. [ ] Buy milk" in listing

    assert await default_registry.handle(state, "/done 1") == "Buy milk: completed"
    assert state.task_store.get(task.id).status is TaskStatus.COMPLETED

    assert await default_registry.handle(state, "/rm 1") == "Deleted: Buy milk"
    assert state.task_store.tasks == ()


@pytest.mark.asyncio
async def test_edit_keeps_existing_deadline_unless_cleared(
    state, remote: FakeRemoteTaskService
) -> None:
    await default_registry.handle(state, "/add Report --date 2099-05-01 --time 08:30")
    (task,) = state.task_store.tasks

    await default_registry.handle(state, "/edit 1 Final report --time 17:00")
    edited = state.task_store.get(task.id)
    assert edited.title == "Final report"
    assert edited.deadline.astimezone().strftime("%Y-%m-%d %H:%M") == "2099-05-01 17:00"

    await default_registry.handle(state, "/edit 1 Final report --no-deadline")
    assert state.task_store.get(task.id).deadline is None


@pytest.mark.asyncio
async def test_bad_input_is_reported(state, remote: FakeRemoteTaskService) -> None:
    assert "Bad date/time" in (await default_registry.handle(state, "/add X --date tomorrow") or "")
    assert "Usage" in (await default_registry.handle(state, "/add") or "")
    assert "No task" in (await default_registry.handle(state, "/edit 7 Title") or "")
    assert "Usage" in (await default_registry.handle(state, "/done") or "")
    assert remote.calls == []


@pytest.mark.asyncio
async def test_add_rejects_past_date(state, remote: FakeRemoteTaskService) -> None:
    reply = await default_registry.handle(state, "/add Old news --date 2001-01-01")

    assert reply is not None and "in the past" in reply
    assert remote.calls == []


@pytest.mark.asyncio
async def test_tasks_filters_and_status(state, remote: FakeRemoteTaskService) -> None:
    remote.rows = [
        make_task("b", title="Done one", minutes=1, status=TaskStatus.COMPLETED),
        make_task("a", title="Open one"),
    ]
    await default_registry.handle(state, "/reload")

    active = await default_registry.handle(state, "/tasks active")
    assert active is not None and "Open one" in active and "Done one" not in active
    assert state.last_listing == ["a"]

    # Positions follow the last listing.
    assert await default_registry.handle(state, "/done 1") == "Open one: completed"

    status = await default_registry.handle(state, "/status")
    assert status is not None and "2 completed" in status
    assert "Usage" in (await default_registry.handle(state, "/tasks weird") or "")
