"""
ops_console.api.routers.console

Console module entry points, each protected by one of the guard variants.

Responsibilities:
- Role-block the admin areas (field and unverified roles are bounced to their portal).
- Gate modules by page permission, by skills (any/all), or with the denied panel.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ops_console.access.roles import (
    ADMIN_AREA_BLOCKED_ROLES,
    BLOCKED_ROLE_REDIRECTS,
    PermissionType,
    Skill,
)
from ops_console.access.session import SessionSnapshot
from ops_console.api.guards import block_roles, require_permission, require_skills

router = APIRouter(tags=["console"])

_admin_area = block_roles(ADMIN_AREA_BLOCKED_ROLES, BLOCKED_ROLE_REDIRECTS)


def _view(name: str, snapshot: SessionSnapshot) -> dict[str, str | None]:
    return {"view": name, "role": snapshot.role}


@router.get(
    "/executive-dashboard",
    dependencies=[Depends(_admin_area)],
)
async def executive_dashboard(
    snapshot: SessionSnapshot = Depends(
        require_permission(PermissionType.page, "executive_dashboard")
    ),
) -> dict[str, str | None]:
    return _view("executive_dashboard", snapshot)


@router.get("/leads")
async def leads(
    snapshot: SessionSnapshot = Depends(require_permission(PermissionType.page, "leads")),
) -> dict[str, str | None]:
    return _view("leads", snapshot)


@router.get("/reports/export")
async def reports_export(
    snapshot: SessionSnapshot = Depends(
        require_permission(PermissionType.feature, "reporting", fallback_path="/dashboard/reports")
    ),
) -> dict[str, str | None]:
    return _view("reports_export", snapshot)


@router.get(
    "/settings/users",
    dependencies=[Depends(_admin_area)],
)
async def settings_users(
    snapshot: SessionSnapshot = Depends(
        require_permission(PermissionType.page, "users", show_denied_message=True)
    ),
) -> dict[str, str | None]:
    return _view("settings_users", snapshot)


@router.get("/custodian")
async def custodian_portal(
    snapshot: SessionSnapshot = Depends(
        require_permission(PermissionType.page, "custodio_portal")
    ),
) -> dict[str, str | None]:
    return _view("custodian_portal", snapshot)


@router.get("/wms")
async def wms(
    snapshot: SessionSnapshot = Depends(require_skills(Skill.wms_view, Skill.wms_manage)),
) -> dict[str, str | None]:
    return _view("wms", snapshot)


@router.get("/wms/adjustments")
async def wms_adjustments(
    snapshot: SessionSnapshot = Depends(
        require_skills(
            Skill.wms_view,
            Skill.wms_manage,
            require_all=True,
            show_denied_message=True,
        )
    ),
) -> dict[str, str | None]:
    return _view("wms_adjustments", snapshot)


@router.get("/monitoring")
async def monitoring(
    snapshot: SessionSnapshot = Depends(
        require_skills(Skill.monitoring_view, Skill.monitoring_manage)
    ),
) -> dict[str, str | None]:
    return _view("monitoring", snapshot)
