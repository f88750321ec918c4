from __future__ import annotations

import asyncio
import itertools
import json
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Optional

import pytest

from school_portal.config import Settings
from school_portal.context import AppContext
from school_portal.services.auth import MemoryKeyValueStore
from school_portal.services.backend import RequestClient

BASE_URL = "http://backend.test"
API_KEY = "anon-test-key"


@dataclass(slots=True)
class FakeCall:
    method: str
    url: str
    path: str
    params: list[tuple[str, str]]
    data: Any
    headers: dict[str, str]

    def json(self) -> Any:
        return json.loads(self.data) if self.data else None


class _FakeResponse:
    def __init__(self, status: int, body: str, reason: str = "") -> None:
        self.status = status
        self.reason = reason
        self.headers = {"Content-Type": "application/json"}
        self._body = body

    async def text(self) -> str:
        return self._body

    async def read(self) -> bytes:
        return self._body.encode()


class _RequestContext:
    def __init__(self, backend: "FakeBackend", call: FakeCall) -> None:
        self._backend = backend
        self._call = call

    async def __aenter__(self) -> _FakeResponse:
        if self._backend.delay:
            await asyncio.sleep(self._backend.delay)
        status, body = self._backend.handle(self._call)
        return _FakeResponse(status, body, "OK" if status < 400 else "Error")

    async def __aexit__(self, *exc_info: Any) -> None:
        return None


def _encode(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class FakeBackend:
    """Stands in for ``aiohttp.ClientSession`` in front of the table REST,
    RPC and storage endpoints, keeping rows in memory."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.objects: dict[str, bytes] = {}
        self.users: dict[str, dict[str, Any]] = {}
        self.calls: list[FakeCall] = []
        self.failures: dict[tuple[str, str], tuple[int, str]] = {}
        self.delay = 0.0
        self._ids = itertools.count(1)

    def seed(self, table: str, *rows: dict[str, Any]) -> list[dict[str, Any]]:
        stored = []
        for row in rows:
            row = dict(row)
            row.setdefault("id", next(self._ids))
            self.tables[table].append(row)
            stored.append(row)
        return stored

    def add_user(self, email: str, password: str, **extra: Any) -> None:
        self.users[email] = {"password": password, "user_id": next(self._ids), "email": email, **extra}

    def fail(self, method: str, path: str, status: int = 500, body: str = '{"message": "boom"}') -> None:
        self.failures[(method, path)] = (status, body)

    def calls_to(self, method: str, path: Optional[str] = None) -> list[FakeCall]:
        return [call for call in self.calls if call.method == method and (path is None or call.path == path)]

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Any = None,
        data: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> _RequestContext:
        path = url.split("/rest/v1/", 1)[1] if "/rest/v1/" in url else url.split("/storage/v1/object/", 1)[1]
        if isinstance(params, dict):
            params = list(params.items())
        call = FakeCall(method, url, path, list(params or []), data, dict(headers or {}))
        self.calls.append(call)
        return _RequestContext(self, call)

    async def close(self) -> None:
        return None

    def handle(self, call: FakeCall) -> tuple[int, str]:
        if (call.method, call.path) in self.failures:
            return self.failures[(call.method, call.path)]
        if "/storage/v1/object/" in call.url:
            return self._storage(call)
        if call.path.startswith("rpc/"):
            return self._rpc(call)
        return self._table(call)

    def _storage(self, call: FakeCall) -> tuple[int, str]:
        if call.method == "POST":
            self.objects[call.path] = call.data
            return 200, json.dumps({"Key": call.path})
        if call.method == "DELETE":
            if self.objects.pop(call.path, None) is None:
                return 404, json.dumps({"message": "Object not found"})
            return 200, json.dumps({"message": "Successfully deleted"})
        return 405, ""

    def _rpc(self, call: FakeCall) -> tuple[int, str]:
        payload = call.json() or {}
        if call.path != "rpc/authenticate_user":
            return 404, json.dumps({"message": f"Unknown function {call.path}"})
        user = self.users.get(payload.get("p_email"))
        if user is None or user["password"] != payload.get("p_password"):
            return 200, json.dumps({"success": False, "message": "Invalid credentials"})
        body = {key: value for key, value in user.items() if key != "password"}
        return 200, json.dumps({"success": True, **body})

    def _table(self, call: FakeCall) -> tuple[int, str]:
        rows = self.tables[call.path]
        filters = [(key, value[3:]) for key, value in call.params if value.startswith("eq.")]
        matched = [row for row in rows if all(_encode(row.get(key)) == value for key, value in filters)]
        representation = call.headers.get("Prefer") == "return=representation"

        if call.method == "GET":
            params = dict(call.params)
            if "order" in params:
                for part in reversed(params["order"].split(",")):
                    column, _, direction = part.partition(".")
                    matched.sort(
                        key=lambda row: (row.get(column) is None, row.get(column) if row.get(column) is not None else 0),
                        reverse=direction == "desc",
                    )
            if "limit" in params:
                matched = matched[: int(params["limit"])]
            return 200, json.dumps(matched)
        if call.method == "POST":
            row = dict(call.json())
            row.setdefault("id", next(self._ids))
            rows.append(row)
            return 201, json.dumps([row]) if representation else ""
        if call.method == "PATCH":
            for row in matched:
                row.update(call.json())
            return (200, json.dumps(matched)) if representation else (204, "")
        if call.method == "DELETE":
            self.tables[call.path] = [row for row in rows if row not in matched]
            return 204, ""
        return 405, ""


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def client(backend: FakeBackend):
    async with RequestClient(base_url=BASE_URL, api_key=API_KEY, session=backend) as request_client:
        yield request_client


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        backend_url=BASE_URL,
        anon_key=API_KEY,
        session_secret="test-secret",
        session_store_path="",
    )


@pytest.fixture
async def ctx(settings: Settings, backend: FakeBackend):
    async with AppContext.from_settings(settings, session=backend, store=MemoryKeyValueStore()) as app:
        yield app
