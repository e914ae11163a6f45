"""
ops_console.db.repositories.audit

Repository for `RoleAuditEvent` entities.

Responsibilities:
- Append audit events (blocked role access, role changes).
- Read the trail back for the admin API (the guards never read it).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from ops_console.db.models import RoleAuditEvent


class RoleAuditRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        user_id: str,
        action: str,
        old_role: str | None,
        new_role: str | None,
        reason: str,
        created_at: datetime | None = None,
    ) -> RoleAuditEvent:
        # Append-only: there is no update/delete path.
        ev = RoleAuditEvent(
            user_id=user_id,
            action=action,
            old_role=old_role,
            new_role=new_role,
            reason=reason,
        )
        if created_at is not None:
            ev.created_at = created_at
        self._session.add(ev)
        await self._session.flush()
        return ev

    async def list_recent(
        self, *, user_id: str | None = None, action: str | None = None, limit: int = 200
    ) -> list[RoleAuditEvent]:
        stmt = select(RoleAuditEvent)
        if user_id is not None:
            stmt = stmt.where(RoleAuditEvent.user_id == user_id)
        if action is not None:
            stmt = stmt.where(RoleAuditEvent.action == action)
        stmt = stmt.order_by(desc(RoleAuditEvent.created_at)).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())


# --- Module Notes -----------------------------------------------------------
# Newest-first, same as every other audit listing in the console.
