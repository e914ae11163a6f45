"""
ops_console.db.repositories.roles

Repository for `UserRoleAssignment` rows.

Responsibilities:
- Read a user's current role (latest assignment wins).
- Replace a user's role; the caller owns the transaction and the audit event.
"""

from __future__ import annotations

from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from ops_console.db.models import UserRoleAssignment


class UserRoleRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_role(self, user_id: str) -> str | None:
        stmt = (
            select(UserRoleAssignment.role)
            .where(UserRoleAssignment.user_id == user_id)
            .order_by(desc(UserRoleAssignment.created_at))
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def set_role(self, *, user_id: str, role: str) -> UserRoleAssignment:
        # Single role per user: replace whatever was there.
        await self._session.execute(
            delete(UserRoleAssignment).where(UserRoleAssignment.user_id == user_id)
        )
        assignment = UserRoleAssignment(user_id=user_id, role=role)
        self._session.add(assignment)
        await self._session.flush()
        return assignment


# --- Module Notes -----------------------------------------------------------
# `get_role` returns None for a user with no row; `SqlRoleDirectory` maps that to `pending`.
