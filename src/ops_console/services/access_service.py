"""
ops_console.services.access_service

Composition root for the access core.

Responsibilities:
- Build the process-wide permission cache, skill directory and audit dispatcher from the
  shared sessionmaker (`AccessRuntime`).
- Resolve a request identity into a `SessionSnapshot` through `SessionProvider`.
- Hand out role-bound resolvers and guard contexts.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ops_console.access.audit import AuditDispatcher
from ops_console.access.guards import GuardContext, SkillDirectory
from ops_console.access.permissions import PermissionCache, PermissionResolver
from ops_console.access.session import (
    AuthService,
    Identity,
    IdentityCallback,
    SessionProvider,
    SessionSnapshot,
)
from ops_console.db.stores import (
    SqlAuditSink,
    SqlPermissionStore,
    SqlRoleDirectory,
    SqlSkillDirectory,
)
from ops_console.settings import Settings


class RoleDirectory(Protocol):
    async def get_role_for_identity(self, user_id: str) -> str | None: ...


class RequestAuthService:
    """`AuthService` for one HTTP request: the identity is fixed by the bearer token."""

    def __init__(self, identity: Identity | None, roles: RoleDirectory) -> None:
        self._identity = identity
        self._roles = roles

    async def get_current_identity(self) -> Identity | None:
        return self._identity

    async def get_role_for_identity(self, user_id: str) -> str | None:
        return await self._roles.get_role_for_identity(user_id)

    def subscribe(self, callback: IdentityCallback) -> Callable[[], None]:
        # A request never observes a sign-in/sign-out; the next request carries the new token.
        return lambda: None


@dataclass(slots=True)
class AccessRuntime:
    settings: Settings
    roles: RoleDirectory
    permissions: PermissionCache
    skills: SkillDirectory
    audit: AuditDispatcher | None

    @classmethod
    def from_sessionmaker(
        cls, settings: Settings, session_factory: async_sessionmaker[AsyncSession]
    ) -> AccessRuntime:
        return cls(
            settings=settings,
            roles=SqlRoleDirectory(session_factory),
            permissions=PermissionCache(SqlPermissionStore(session_factory)),
            skills=SqlSkillDirectory(session_factory),
            audit=AuditDispatcher(SqlAuditSink(session_factory)) if settings.audit_enabled else None,
        )

    def session_provider(self, auth: AuthService) -> SessionProvider:
        return SessionProvider(auth, on_role_change=self._role_changed)

    async def session_for(self, identity: Identity | None) -> SessionSnapshot:
        provider = self.session_provider(RequestAuthService(identity, self.roles))
        try:
            return await provider.start()
        finally:
            provider.stop()

    def resolver_for(self, snapshot: SessionSnapshot) -> PermissionResolver:
        return PermissionResolver(self.permissions, snapshot.role)

    def guard_context(
        self, snapshot: SessionSnapshot, *, attempted_path: str, navigation_id: str
    ) -> GuardContext:
        return GuardContext(
            attempted_path=attempted_path,
            navigation_id=navigation_id,
            resolver=self.resolver_for(snapshot),
            skills=self.skills,
            audit=self.audit,
            login_path=self.settings.login_path,
            default_fallback_path=self.settings.denied_fallback_path,
        )

    async def aclose(self) -> None:
        if self.audit is not None:
            await self.audit.drain()

    def _role_changed(self, old: str | None, new: str | None) -> None:
        # Only long-lived providers ever move away from a resolved role.
        if old is not None:
            self.permissions.invalidate(old)


# --- Module Notes -----------------------------------------------------------
# One AccessRuntime lives on `app.state.access`; everything request-scoped is derived from it.
