"""
ops_console.db.repositories.skills

Repository for `UserSkill` grants.

Responsibilities:
- List a user's active, unexpired skills.
- Grant (or re-activate) and revoke skills; revocation is a soft delete.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ops_console.db.models import UserSkill, utcnow


def _naive_utc(value: datetime | None) -> datetime | None:
    # Stored timestamps are naive UTC (see `models.utcnow`).
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class UserSkillRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def active_skills(self, user_id: str, *, now: datetime | None = None) -> set[str]:
        now = now or utcnow()
        stmt = select(UserSkill.skill).where(
            UserSkill.user_id == user_id,
            UserSkill.is_active.is_(True),
            or_(UserSkill.expires_at.is_(None), UserSkill.expires_at > now),
        )
        return set((await self._session.execute(stmt)).scalars().all())

    async def grant(
        self,
        *,
        user_id: str,
        skill: str,
        granted_by: str | None = None,
        expires_at: datetime | None = None,
    ) -> UserSkill:
        stmt = select(UserSkill).where(UserSkill.user_id == user_id, UserSkill.skill == skill)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            row = UserSkill(user_id=user_id, skill=skill)
            self._session.add(row)
        row.is_active = True
        row.granted_by = granted_by
        row.granted_at = utcnow()
        row.expires_at = _naive_utc(expires_at)
        await self._session.flush()
        return row

    async def revoke(self, *, user_id: str, skill: str) -> bool:
        stmt = select(UserSkill).where(UserSkill.user_id == user_id, UserSkill.skill == skill)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None or not row.is_active:
            return False
        row.is_active = False
        await self._session.flush()
        return True


# --- Module Notes -----------------------------------------------------------
# Expiry is compared in naive UTC, matching `models.utcnow`.
