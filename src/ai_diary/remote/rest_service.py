# src/ai_diary/remote/rest_service.py

from __future__ import annotations

"""
RemoteTaskService over PostgREST (the REST layer Supabase exposes).

Rows live in one table keyed by `id` and filtered by `user_id`. Writes ask
for `Prefer: return=representation`, so an update/delete that matched no row
comes back as an empty array and is reported as NotFound.

HTTP status mapping:
- 404                      -> NotFound
- 400, 409, 422            -> ValidationRejected
- transport errors, 401, 403, 408, 429, 5xx and anything else -> RemoteUnavailable
"""

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

import httpx

from ..core.errors import NotFound, RemoteUnavailable, ValidationRejected
from ..tasks.task_models import Task, TaskStatus, format_instant, task_from_row

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset({"title", "description", "deadline", "status"})
_VALIDATION_STATUSES = frozenset({400, 409, 422})


def make_timeout(*, connect_s: float, read_s: float) -> httpx.Timeout:
    return httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s)


def _error_text(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "").strip()[:200] or resp.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body.get("hint") or body)
    return str(body)[:200]


def _raise_for_status(resp: httpx.Response, op: str) -> None:
    code = resp.status_code
    if 200 <= code < 300:
        return
    text = _error_text(resp)
    details = {"status": code, "op": op}
    if code == 404:
        raise NotFound(f"{op}: {text}", details)
    if code in _VALIDATION_STATUSES:
        raise ValidationRejected(text, details)
    raise RemoteUnavailable(f"{op}: HTTP {code} {text}", details)


def _encode_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - _UPDATABLE_FIELDS
    if unknown:
        raise ValidationRejected(f"fields cannot be updated: {', '.join(sorted(unknown))}")

    body: dict[str, Any] = {}
    for key, value in fields.items():
        if key == "deadline":
            body[key] = format_instant(value)
        elif key == "status":
            try:
                body[key] = TaskStatus(value).value
            except ValueError as e:
                raise ValidationRejected(f"bad status: {value!r}") from e
        else:
            body[key] = value
    return body


class RestTaskService:
    """Async PostgREST client implementing the RemoteTaskService port."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        access_token: str | None = None,
        table: str = "tasks",
        timeout: httpx.Timeout | float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("base_url is required")
        if not api_key or not api_key.strip():
            raise ValueError("api_key is required")

        self._table = table
        self._http = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {access_token or api_key}",
                "Accept": "application/json",
            },
            timeout=timeout if timeout is not None else make_timeout(connect_s=5.0, read_s=15.0),
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings) -> RestTaskService:
        return cls(
            base_url=settings.supabase_url,
            api_key=settings.supabase_anon_key or "",
            access_token=settings.access_token,
            table=settings.tasks_table,
            timeout=make_timeout(
                connect_s=settings.remote_connect_timeout_seconds,
                read_s=settings.remote_read_timeout_seconds,
            ),
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    # ---- low-level helpers ----

    async def _request(
        self,
        op: str,
        method: str,
        *,
        params: dict[str, str],
        body: dict[str, Any] | None = None,
        returning: bool = False,
    ) -> Any:
        headers = {"Prefer": "return=representation"} if returning else None
        try:
            resp = await self._http.request(
                method, f"/{self._table}", params=params, json=body, headers=headers
            )
        except httpx.TimeoutException as e:
            raise RemoteUnavailable(f"{op}: request timed out", {"op": op}) from e
        except httpx.HTTPError as e:
            raise RemoteUnavailable(f"{op}: {e.__class__.__name__}", {"op": op}) from e

        logger.debug("PostgREST %s %s -> %s", method, resp.request.url, resp.status_code)
        _raise_for_status(resp, op)

        if not resp.content:
            return []
        try:
            return resp.json()
        except ValueError as e:
            raise RemoteUnavailable(f"{op}: malformed response body", {"op": op}) from e

    @staticmethod
    def _rows(payload: Any, op: str) -> list[dict[str, Any]]:
        if not isinstance(payload, list) or not all(isinstance(r, dict) for r in payload):
            raise RemoteUnavailable(f"{op}: expected a JSON array of rows", {"op": op})
        return payload

    @staticmethod
    def _decode(row: dict[str, Any], op: str) -> Task:
        try:
            return task_from_row(row)
        except ValidationRejected as e:
            raise RemoteUnavailable(f"{op}: malformed task row ({e.message})", {"op": op}) from e

    # ---- RemoteTaskService ----

    async def list_tasks(self, owner_id: str) -> list[Task]:
        payload = await self._request(
            "list_tasks",
            "GET",
            params={"select": "*", "user_id": f"eq.{owner_id}", "order": "created_at.desc"},
        )
        return [self._decode(r, "list_tasks") for r in self._rows(payload, "list_tasks")]

    async def insert_task(
        self,
        owner_id: str,
        *,
        title: str,
        description: str | None = None,
        deadline: datetime | None = None,
    ) -> Task:
        payload = await self._request(
            "insert_task",
            "POST",
            params={"select": "*"},
            body={
                "title": title,
                "description": description,
                "status": TaskStatus.ACTIVE.value,
                "user_id": owner_id,
                "deadline": format_instant(deadline),
            },
            returning=True,
        )
        rows = self._rows(payload, "insert_task")
        if not rows:
            raise RemoteUnavailable("insert_task: server returned no row", {"op": "insert_task"})
        return self._decode(rows[0], "insert_task")

    async def update_task(self, task_id: str, fields: Mapping[str, Any]) -> None:
        body = _encode_fields(fields)
        if not body:
            return
        payload = await self._request(
            "update_task",
            "PATCH",
            params={"id": f"eq.{task_id}"},
            body=body,
            returning=True,
        )
        if not self._rows(payload, "update_task"):
            raise NotFound(f"task {task_id} does not exist", {"task_id": task_id})

    async def delete_task(self, task_id: str) -> None:
        payload = await self._request(
            "delete_task",
            "DELETE",
            params={"id": f"eq.{task_id}"},
            returning=True,
        )
        if not self._rows(payload, "delete_task"):
            raise NotFound(f"task {task_id} does not exist", {"task_id": task_id})
