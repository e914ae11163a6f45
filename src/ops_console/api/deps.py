"""
ops_console.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide settings, DB sessions and the shared `AccessRuntime` from app.state.
- Resolve the current session snapshot and a role-bound permission resolver.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ops_console.access.permissions import PermissionResolver
from ops_console.access.session import Identity, SessionSnapshot
from ops_console.auth.deps import get_identity
from ops_console.services.access_service import AccessRuntime
from ops_console.settings import Settings, get_settings


def settings_dep(settings: Settings = Depends(get_settings)) -> Settings:
    return settings


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


def access_runtime(request: Request) -> AccessRuntime:
    return request.app.state.access  # type: ignore[attr-defined]


def navigation_id(request: Request) -> str:
    # Set by RequestContextMiddleware; the fallback only matters for bare test apps.
    return getattr(request.state, "navigation_id", None) or uuid.uuid4().hex


async def current_session(
    identity: Identity | None = Depends(get_identity),
    runtime: AccessRuntime = Depends(access_runtime),
) -> SessionSnapshot:
    return await runtime.session_for(identity)


async def permission_resolver(
    snapshot: SessionSnapshot = Depends(current_session),
    runtime: AccessRuntime = Depends(access_runtime),
) -> PermissionResolver:
    resolver = runtime.resolver_for(snapshot)
    await resolver.ensure_loaded()
    return resolver
