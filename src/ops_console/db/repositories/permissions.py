"""
ops_console.db.repositories.permissions

Repository for `RolePermission` rows.

Responsibilities:
- List a role's rows in bulk (the permission cache loads whole roles at once).
- Upsert/delete a single (role, type, id) triple for the admin API.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ops_console.db.models import RolePermission


class RolePermissionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_role(self, role: str) -> list[RolePermission]:
        stmt = (
            select(RolePermission)
            .where(RolePermission.role == role)
            .order_by(RolePermission.permission_type, RolePermission.permission_id)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def get(
        self, *, role: str, permission_type: str, permission_id: str
    ) -> RolePermission | None:
        stmt = select(RolePermission).where(
            RolePermission.role == role,
            RolePermission.permission_type == permission_type,
            RolePermission.permission_id == permission_id,
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def upsert(
        self, *, role: str, permission_type: str, permission_id: str, allowed: bool
    ) -> RolePermission:
        existing = await self.get(
            role=role, permission_type=permission_type, permission_id=permission_id
        )
        if existing is not None:
            existing.allowed = allowed
            await self._session.flush()
            return existing

        row = RolePermission(
            role=role,
            permission_type=permission_type,
            permission_id=permission_id,
            allowed=allowed,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def delete(self, *, role: str, permission_type: str, permission_id: str) -> bool:
        existing = await self.get(
            role=role, permission_type=permission_type, permission_id=permission_id
        )
        if existing is None:
            return False
        await self._session.delete(existing)
        await self._session.flush()
        return True
