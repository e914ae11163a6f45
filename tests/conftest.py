"""
tests.conftest

Shared fixtures: in-memory collaborators for the access core and an app bound to a
throwaway SQLite file.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from ops_console.access.audit import AuditDispatcher, AuditEntry
from ops_console.access.guards import GuardContext
from ops_console.access.permissions import PermissionCache, PermissionResolver, PermissionRow
from ops_console.access.session import Identity
from ops_console.api.app import create_app
from ops_console.settings import Settings


class FakePermissionStore:
    def __init__(self, rows: dict[str, list[PermissionRow]] | None = None) -> None:
        self.rows = rows or {}
        self.calls = 0
        self.fail = False
        self.gate: asyncio.Event | None = None

    async def fetch_permissions_for_role(self, role: str) -> list[PermissionRow]:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise RuntimeError("permission store unavailable")
        return list(self.rows.get(role, []))


class FakeSkillDirectory:
    def __init__(self, skills: dict[str, set[str]] | None = None) -> None:
        self.skills = skills or {}
        self.fail = False

    async def skills_for(self, user_id: str) -> set[str]:
        if self.fail:
            raise RuntimeError("skill directory unavailable")
        return set(self.skills.get(user_id, set()))


class FakeAuditSink:
    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []
        self.fail = False

    async def append(self, entry: AuditEntry) -> None:
        if self.fail:
            raise RuntimeError("audit table unavailable")
        self.entries.append(entry)


class FakeAuthService:
    """Auth collaborator whose identity can be switched and whose role lookups can be held."""

    def __init__(self, identity: Identity | None, roles: dict[str, str] | None = None) -> None:
        self.identity = identity
        self.roles = roles or {}
        self.gates: dict[str, asyncio.Event] = {}
        self.failing: set[str] = set()
        self._subscribers: list = []

    async def get_current_identity(self) -> Identity | None:
        return self.identity

    async def get_role_for_identity(self, user_id: str) -> str | None:
        gate = self.gates.get(user_id)
        if gate is not None:
            await gate.wait()
        if user_id in self.failing:
            raise RuntimeError("role directory unavailable")
        return self.roles.get(user_id)

    def subscribe(self, callback):
        self._subscribers.append(callback)
        return lambda: self._subscribers.remove(callback)

    def emit(self, identity: Identity | None) -> None:
        self.identity = identity
        for callback in list(self._subscribers):
            callback(identity)


def rows(*triples: tuple[str, str, bool]) -> list[PermissionRow]:
    return [PermissionRow(t, i, a) for t, i, a in triples]


@pytest.fixture
def store() -> FakePermissionStore:
    return FakePermissionStore()


@pytest.fixture
def cache(store: FakePermissionStore) -> PermissionCache:
    return PermissionCache(store)


@pytest.fixture
def skills() -> FakeSkillDirectory:
    return FakeSkillDirectory()


@pytest.fixture
def sink() -> FakeAuditSink:
    return FakeAuditSink()


@pytest.fixture
def make_ctx(cache: PermissionCache, skills: FakeSkillDirectory, sink: FakeAuditSink):
    dispatcher = AuditDispatcher(sink)

    def _make(role: str | None, *, path: str = "/admin", navigation_id: str = "nav-1") -> GuardContext:
        return GuardContext(
            attempted_path=path,
            navigation_id=navigation_id,
            resolver=PermissionResolver(cache, role),
            skills=skills,
            audit=dispatcher,
        )

    _make.audit = dispatcher  # type: ignore[attr-defined]
    return _make


@pytest_asyncio.fixture
async def app(tmp_path: Path) -> AsyncIterator[FastAPI]:
    settings = Settings(env="test", database_url=f"sqlite+aiosqlite:///{tmp_path / 'ops.db'}")
    app = create_app(settings=settings)
    # httpx ASGITransport does not manage lifespan; run it around the test.
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def bearer(client: httpx.AsyncClient, subject: str, role: str | None = None) -> dict[str, str]:
    body: dict[str, str] = {"subject": subject}
    if role is not None:
        body["role"] = role
    r = await client.post("/v1/dev/token", json=body)
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}
