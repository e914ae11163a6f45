"""
ops_console.api.routers.admin

Administration of roles, permission rows and skills.

Responsibilities:
- Assign a user's role (audited as `role_change`).
- Read/write a role's permission rows (the permission cache is refreshed on write).
- Grant/revoke skills and read the audit trail.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_404_NOT_FOUND

from ops_console.access.roles import (
    ADMIN_AREA_BLOCKED_ROLES,
    BLOCKED_ROLE_REDIRECTS,
    PermissionType,
    Role,
    Skill,
)
from ops_console.access.session import SessionSnapshot
from ops_console.api.deps import access_runtime, db_session
from ops_console.api.guards import block_roles, require_permission
from ops_console.db.repositories.audit import RoleAuditRepo
from ops_console.services.access_service import AccessRuntime
from ops_console.services.admin_service import AdminService

_manage_users = require_permission(PermissionType.page, "users", show_denied_message=True)

router = APIRouter(
    prefix="/v1/admin",
    tags=["admin"],
    dependencies=[Depends(block_roles(ADMIN_AREA_BLOCKED_ROLES, BLOCKED_ROLE_REDIRECTS))],
)


class AssignRoleRequest(BaseModel):
    role: Role
    reason: str | None = Field(default=None, max_length=500)


class RoleChangeResponse(BaseModel):
    user_id: str
    old_role: str | None
    new_role: str


class PermissionWrite(BaseModel):
    permission_type: PermissionType
    permission_id: str = Field(min_length=1, max_length=128)
    allowed: bool = True


class PermissionRead(BaseModel):
    role: str
    permission_type: str
    permission_id: str
    allowed: bool


class SkillGrantRequest(BaseModel):
    skill: Skill
    expires_at: datetime | None = None


def _admin(session: AsyncSession, runtime: AccessRuntime) -> AdminService:
    return AdminService(session=session, permissions=runtime.permissions)


def _actor_id(actor: SessionSnapshot) -> str:
    if actor.identity is None:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return actor.identity.id


@router.put("/users/{user_id}/role", response_model=RoleChangeResponse)
async def assign_role(
    user_id: str,
    body: AssignRoleRequest,
    actor: SessionSnapshot = Depends(_manage_users),
    session: AsyncSession = Depends(db_session),
    runtime: AccessRuntime = Depends(access_runtime),
) -> RoleChangeResponse:
    change = await _admin(session, runtime).assign_role(
        user_id=user_id, role=body.role, actor=_actor_id(actor), reason=body.reason
    )
    return RoleChangeResponse(
        user_id=change.user_id, old_role=change.old_role, new_role=change.new_role
    )


@router.get("/roles/{role}/permissions", response_model=list[PermissionRead])
async def list_permissions(
    role: Role,
    _: SessionSnapshot = Depends(_manage_users),
    session: AsyncSession = Depends(db_session),
    runtime: AccessRuntime = Depends(access_runtime),
) -> list[PermissionRead]:
    rows = await _admin(session, runtime).list_permissions(role)
    return [
        PermissionRead(
            role=r.role,
            permission_type=r.permission_type,
            permission_id=r.permission_id,
            allowed=r.allowed,
        )
        for r in rows
    ]


@router.put("/roles/{role}/permissions", response_model=PermissionRead)
async def set_permission(
    role: Role,
    body: PermissionWrite,
    _: SessionSnapshot = Depends(_manage_users),
    session: AsyncSession = Depends(db_session),
    runtime: AccessRuntime = Depends(access_runtime),
) -> PermissionRead:
    row = await _admin(session, runtime).set_permission(
        role=role,
        permission_type=body.permission_type,
        permission_id=body.permission_id,
        allowed=body.allowed,
    )
    return PermissionRead(
        role=row.role,
        permission_type=row.permission_type,
        permission_id=row.permission_id,
        allowed=row.allowed,
    )


@router.delete("/roles/{role}/permissions/{permission_type}/{permission_id}")
async def delete_permission(
    role: Role,
    permission_type: PermissionType,
    permission_id: str,
    _: SessionSnapshot = Depends(_manage_users),
    session: AsyncSession = Depends(db_session),
    runtime: AccessRuntime = Depends(access_runtime),
) -> dict[str, bool]:
    deleted = await _admin(session, runtime).delete_permission(
        role=role, permission_type=permission_type, permission_id=permission_id
    )
    if not deleted:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Permission not found")
    return {"deleted": True}


@router.post("/users/{user_id}/skills")
async def grant_skill(
    user_id: str,
    body: SkillGrantRequest,
    actor: SessionSnapshot = Depends(_manage_users),
    session: AsyncSession = Depends(db_session),
    runtime: AccessRuntime = Depends(access_runtime),
) -> dict[str, Any]:
    row = await _admin(session, runtime).grant_skill(
        user_id=user_id,
        skill=body.skill,
        actor=_actor_id(actor),
        expires_at=body.expires_at,
    )
    return {
        "user_id": row.user_id,
        "skill": row.skill,
        "expires_at": row.expires_at.isoformat() if row.expires_at else None,
    }


@router.delete("/users/{user_id}/skills/{skill}")
async def revoke_skill(
    user_id: str,
    skill: Skill,
    _: SessionSnapshot = Depends(_manage_users),
    session: AsyncSession = Depends(db_session),
    runtime: AccessRuntime = Depends(access_runtime),
) -> dict[str, bool]:
    revoked = await _admin(session, runtime).revoke_skill(user_id=user_id, skill=skill)
    if not revoked:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Skill not granted")
    return {"revoked": True}


@router.get("/audit")
async def list_audit(
    user_id: str | None = None,
    action: str | None = None,
    limit: int = Query(default=200, ge=1, le=1000),
    _: SessionSnapshot = Depends(_manage_users),
    session: AsyncSession = Depends(db_session),
) -> list[dict[str, Any]]:
    events = await RoleAuditRepo(session).list_recent(user_id=user_id, action=action, limit=limit)
    return [
        {
            "id": str(e.id),
            "user_id": e.user_id,
            "action": e.action,
            "old_role": e.old_role,
            "new_role": e.new_role,
            "reason": e.reason,
            "created_at": e.created_at.isoformat(),
        }
        for e in events
    ]


# --- Module Notes -----------------------------------------------------------
# Admin and owner pass `_manage_users` through the universal override; other roles need
# an explicit (page, "users") row.
