"""
ops_console.db.stores

SQL-backed implementations of the access-layer collaborators.

Responsibilities:
- Role directory (`get_role_for_identity`), permission store, skill directory and audit
  sink, each opening a short-lived session from the shared sessionmaker.
- Keep the access core free of SQLAlchemy: adapters hand back plain values/dataclasses.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ops_console.access.audit import AuditEntry
from ops_console.access.permissions import PermissionRow
from ops_console.access.roles import Role
from ops_console.db.repositories.audit import RoleAuditRepo
from ops_console.db.repositories.permissions import RolePermissionRepo
from ops_console.db.repositories.roles import UserRoleRepo
from ops_console.db.repositories.skills import UserSkillRepo


class _SessionBacked:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory


class SqlRoleDirectory(_SessionBacked):
    async def get_role_for_identity(self, user_id: str) -> str | None:
        async with self._session_factory() as session:
            role = await UserRoleRepo(session).get_role(user_id)
        # No assignment yet means a signed-up but unapproved user; lookup errors propagate.
        return role if role is not None else Role.pending


class SqlPermissionStore(_SessionBacked):
    async def fetch_permissions_for_role(self, role: str) -> list[PermissionRow]:
        async with self._session_factory() as session:
            rows = await RolePermissionRepo(session).list_for_role(role)
        return [
            PermissionRow(
                permission_type=r.permission_type,
                permission_id=r.permission_id,
                allowed=r.allowed,
            )
            for r in rows
        ]


class SqlSkillDirectory(_SessionBacked):
    async def skills_for(self, user_id: str) -> set[str]:
        async with self._session_factory() as session:
            return await UserSkillRepo(session).active_skills(user_id)


class SqlAuditSink(_SessionBacked):
    async def append(self, entry: AuditEntry) -> None:
        async with self._session_factory() as session:
            await RoleAuditRepo(session).add(
                user_id=entry.user_id,
                action=str(entry.action),
                old_role=entry.old_role,
                new_role=entry.new_role,
                reason=entry.reason,
                created_at=entry.timestamp.replace(tzinfo=None),
            )
            await session.commit()
