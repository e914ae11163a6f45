"""
ops_console.db.models

Persistence schema for the access layer.

Responsibilities:
- UserRoleAssignment: one role per user (latest row wins).
- RolePermission: (role, permission_type, permission_id) -> allowed.
- UserSkill: skills granted to a user, optionally expiring.
- RoleAuditEvent: append-only log of blocked access attempts and role changes.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, Index, String, Text, UniqueConstraint, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column

from ops_console.db.base import Base


def utcnow() -> datetime:
    # Naive UTC: SQLite drops tzinfo anyway, keep every backend consistent.
    return datetime.now(tz=UTC).replace(tzinfo=None)


class UserRoleAssignment(Base):
    __tablename__ = "user_roles"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    __table_args__ = (Index("ix_user_roles_user_created", "user_id", "created_at"),)


class RolePermission(Base):
    __tablename__ = "role_permissions"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    role: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    permission_type: Mapped[str] = mapped_column(String(32), nullable=False)
    permission_id: Mapped[str] = mapped_column(String(128), nullable=False)
    allowed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("role", "permission_type", "permission_id", name="uq_role_permission"),
    )


class UserSkill(Base):
    __tablename__ = "user_skills"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    skill: Mapped[str] = mapped_column(String(64), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    granted_by: Mapped[str | None] = mapped_column(String(256), nullable=True)
    granted_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (UniqueConstraint("user_id", "skill", name="uq_user_skill"),)


class RoleAuditEvent(Base):
    __tablename__ = "role_audit_log"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    old_role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    new_role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, index=True)


# --- Module Notes -----------------------------------------------------------
# Role, type and skill columns are plain strings: the enumerations in `access.roles` are
# validated at the API edge so older rows with retired values still load.
