"""
ops_console.services.admin_service

Administrative changes to roles, permission rows and skills (transaction owner).

Responsibilities:
- Assign a user's single role and append a `role_change` audit event in the same commit.
- Upsert/delete permission rows and refresh the permission cache for that role.
- Grant/revoke user skills.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from ops_console.access.audit import AuditAction
from ops_console.access.permissions import PermissionCache
from ops_console.db.models import RolePermission, UserSkill
from ops_console.db.repositories.audit import RoleAuditRepo
from ops_console.db.repositories.permissions import RolePermissionRepo
from ops_console.db.repositories.roles import UserRoleRepo
from ops_console.db.repositories.skills import UserSkillRepo
from ops_console.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RoleChange:
    user_id: str
    old_role: str | None
    new_role: str


class AdminService:
    def __init__(self, *, session: AsyncSession, permissions: PermissionCache) -> None:
        self._session = session
        self._permissions = permissions

        self._roles = UserRoleRepo(session)
        self._rows = RolePermissionRepo(session)
        self._skills = UserSkillRepo(session)
        self._audit = RoleAuditRepo(session)

    async def assign_role(
        self, *, user_id: str, role: str, actor: str, reason: str | None = None
    ) -> RoleChange:
        old_role = await self._roles.get_role(user_id)
        await self._roles.set_role(user_id=user_id, role=role)
        await self._audit.add(
            user_id=user_id,
            action=AuditAction.role_change,
            old_role=old_role,
            new_role=role,
            reason=reason or f"role set by {actor}",
        )
        await self._session.commit()
        log.info("role_assigned", user_id=user_id, old_role=old_role, new_role=role, actor=actor)
        return RoleChange(user_id=user_id, old_role=old_role, new_role=role)

    async def list_permissions(self, role: str) -> list[RolePermission]:
        return await self._rows.list_for_role(role)

    async def set_permission(
        self, *, role: str, permission_type: str, permission_id: str, allowed: bool
    ) -> RolePermission:
        row = await self._rows.upsert(
            role=role,
            permission_type=permission_type,
            permission_id=permission_id,
            allowed=allowed,
        )
        await self._session.commit()
        self._permissions.invalidate(role)
        return row

    async def delete_permission(
        self, *, role: str, permission_type: str, permission_id: str
    ) -> bool:
        deleted = await self._rows.delete(
            role=role, permission_type=permission_type, permission_id=permission_id
        )
        if deleted:
            await self._session.commit()
            self._permissions.invalidate(role)
        return deleted

    async def grant_skill(
        self,
        *,
        user_id: str,
        skill: str,
        actor: str,
        expires_at: datetime | None = None,
    ) -> UserSkill:
        row = await self._skills.grant(
            user_id=user_id, skill=skill, granted_by=actor, expires_at=expires_at
        )
        await self._session.commit()
        return row

    async def revoke_skill(self, *, user_id: str, skill: str) -> bool:
        revoked = await self._skills.revoke(user_id=user_id, skill=skill)
        if revoked:
            await self._session.commit()
        return revoked


# --- Module Notes -----------------------------------------------------------
# Cache invalidation happens after commit so a concurrent reload cannot memoize the
# pre-change rows.
