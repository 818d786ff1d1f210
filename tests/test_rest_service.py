# tests/test_rest_service.py

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, datetime
from types import SimpleNamespace

import httpx
import pytest

from ai_diary.core.errors import NotFound, RemoteUnavailable, ValidationRejected
from ai_diary.remote.rest_service import RestTaskService
from ai_diary.tasks.task_models import TaskStatus

Handler = Callable[[httpx.Request], httpx.Response]


def _row(task_id: str, created: str, **extra) -> dict:
    row = {
        "id": task_id,
        "title": f"Task {task_id}",
        "description": None,
        "status": "active",
        "deadline": None,
        "user_id": "u1",
        "created_at": created,
    }
    row.update(extra)
    return row


def _service(handler: Handler, **kwargs) -> RestTaskService:
    return RestTaskService(
        base_url="https://example.supabase.co",
        api_key="anon-key",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_list_tasks_filters_by_owner_and_orders_newest_first() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[_row("b", "2026-01-02T00:00:00Z"), _row("a", "2026-01-01T00:00:00Z")],
        )

    svc = _service(handler, access_token="user-jwt")
    tasks = await svc.list_tasks("u1")
    await svc.aclose()

    assert [t.id for t in tasks] == ["b", "a"]
    req = seen[0]
    assert req.method == "GET"
    assert req.url.path == "/rest/v1/tasks"
    assert req.url.params["user_id"] == "eq.u1"
    assert req.url.params["order"] == "created_at.desc"
    assert req.headers["apikey"] == "anon-key"
    assert req.headers["authorization"] == "Bearer user-jwt"


@pytest.mark.asyncio
async def test_insert_task_posts_active_row_and_returns_server_task() -> None:
    seen: list[httpx.Request] = []
    deadline = datetime(2026, 2, 1, 9, 30, tzinfo=UTC)

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = json.loads(request.content)
        return httpx.Response(
            201,
            json=[_row("srv-1", "2026-01-05T10:00:00Z", title=body["title"], deadline=body["deadline"])],
        )

    svc = _service(handler, table="todo")
    task = await svc.insert_task("u1", title="Buy milk", deadline=deadline)
    await svc.aclose()

    req = seen[0]
    body = json.loads(req.content)
    assert req.method == "POST"
    assert req.url.path == "/rest/v1/todo"
    assert req.headers["prefer"] == "return=representation"
    assert body == {
        "title": "Buy milk",
        "description": None,
        "status": "active",
        "user_id": "u1",
        "deadline": "2026-02-01T09:30:00+00:00",
    }
    assert task.id == "srv-1"
    assert task.deadline == deadline
    assert task.created_at == datetime(2026, 1, 5, 10, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_update_task_encodes_fields_and_targets_id() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[_row("a", "2026-01-01T00:00:00Z", status="completed")])

    svc = _service(handler)
    await svc.update_task("a", {"status": TaskStatus.COMPLETED, "deadline": None})
    await svc.aclose()

    req = seen[0]
    assert req.method == "PATCH"
    assert req.url.params["id"] == "eq.a"
    assert json.loads(req.content) == {"status": "completed", "deadline": None}


@pytest.mark.asyncio
async def test_update_and_delete_of_missing_row_raise_not_found() -> None:
    svc = _service(lambda request: httpx.Response(200, json=[]))

    with pytest.raises(NotFound):
        await svc.update_task("gone", {"title": "x"})
    with pytest.raises(NotFound):
        await svc.delete_task("gone")
    await svc.aclose()


@pytest.mark.asyncio
async def test_delete_task_succeeds_on_returned_row() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[_row("a", "2026-01-01T00:00:00Z")])

    svc = _service(handler)
    await svc.delete_task("a")
    await svc.aclose()

    assert seen[0].method == "DELETE"
    assert seen[0].url.params["id"] == "eq.a"


@pytest.mark.asyncio
async def test_update_rejects_unknown_fields_without_request() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    svc = _service(handler)
    with pytest.raises(ValidationRejected):
        await svc.update_task("a", {"user_id": "someone-else"})
    await svc.aclose()

    assert seen == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (400, ValidationRejected),
        (409, ValidationRejected),
        (422, ValidationRejected),
        (404, NotFound),
        (401, RemoteUnavailable),
        (403, RemoteUnavailable),
        (429, RemoteUnavailable),
        (500, RemoteUnavailable),
        (503, RemoteUnavailable),
    ],
)
async def test_http_status_mapping(status: int, expected: type[Exception]) -> None:
    svc = _service(lambda request: httpx.Response(status, json={"message": "nope"}))

    with pytest.raises(expected) as excinfo:
        await svc.insert_task("u1", title="x")
    await svc.aclose()

    assert excinfo.value.details["status"] == status


@pytest.mark.asyncio
async def test_transport_error_is_remote_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    svc = _service(handler)
    with pytest.raises(RemoteUnavailable) as excinfo:
        await svc.list_tasks("u1")
    await svc.aclose()

    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_timeout_is_remote_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    svc = _service(handler)
    with pytest.raises(RemoteUnavailable):
        await svc.delete_task("a")
    await svc.aclose()


@pytest.mark.asyncio
async def test_malformed_payloads_are_remote_unavailable() -> None:
    svc = _service(lambda request: httpx.Response(200, content=b"<html>"))
    with pytest.raises(RemoteUnavailable):
        await svc.list_tasks("u1")
    await svc.aclose()

    svc = _service(lambda request: httpx.Response(200, json={"not": "a list"}))
    with pytest.raises(RemoteUnavailable):
        await svc.list_tasks("u1")
    await svc.aclose()

    svc = _service(lambda request: httpx.Response(200, json=[{"title": "no id"}]))
    with pytest.raises(RemoteUnavailable):
        await svc.list_tasks("u1")
    await svc.aclose()


def test_constructor_and_from_settings() -> None:
    with pytest.raises(ValueError):
        RestTaskService(base_url="", api_key="k")
    with pytest.raises(ValueError):
        RestTaskService(base_url="https://x.supabase.co", api_key="")

    settings = SimpleNamespace(
        supabase_url="https://x.supabase.co",
        supabase_anon_key="anon",
        access_token=None,
        tasks_table="tasks",
        remote_connect_timeout_seconds=2.0,
        remote_read_timeout_seconds=8.0,
    )
    svc = RestTaskService.from_settings(settings)
    assert isinstance(svc, RestTaskService)
