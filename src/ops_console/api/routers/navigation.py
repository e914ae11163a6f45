"""
ops_console.api.routers.navigation

Entry-point navigation for the console.

Responsibilities:
- `/`: send visitors to the landing page or straight to their role's home.
- `/dashboard`: smart in-session redirect for roles that have a working module.
- `/home` and `/v1/session`: the generic home and the session snapshot, listing the
  modules the caller may open (conditional-render guards).
- `/v1/permissions/check`: point lookups for front-end gating.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse, Response
from pydantic import BaseModel
from starlette.status import HTTP_303_SEE_OTHER

from ops_console.access.guards import AccessGuard, Loading, PermissionCondition, Redirect
from ops_console.access.permissions import PermissionResolver
from ops_console.access.redirects import root_redirect, route_for_role, smart_redirect
from ops_console.access.roles import PermissionType
from ops_console.access.session import SessionSnapshot, SessionState
from ops_console.api.deps import (
    access_runtime,
    current_session,
    navigation_id,
    permission_resolver,
    settings_dep,
)
from ops_console.api.guards import outcome_response
from ops_console.services.access_service import AccessRuntime
from ops_console.settings import Settings

router = APIRouter(tags=["navigation"])

# Console modules shown on the home screen: (module id, route). Each is gated by the
# page permission of the same id.
CONSOLE_MODULES: tuple[tuple[str, str], ...] = (
    ("leads", "/leads"),
    ("planeacion", "/planeacion"),
    ("services", "/services"),
    ("monitoring", "/monitoring"),
    ("wms", "/wms"),
    ("reports", "/dashboard/reports"),
    ("executive_dashboard", "/executive-dashboard"),
    ("tickets", "/tickets"),
    ("settings", "/settings"),
)

_MODULE_GATES: dict[str, AccessGuard] = {
    module_id: AccessGuard(
        PermissionCondition(PermissionType.page, module_id), render_fallback=True
    )
    for module_id, _ in CONSOLE_MODULES
}


class ModuleLink(BaseModel):
    id: str
    route: str


class SessionResponse(BaseModel):
    state: str
    user_id: str | None
    email: str | None
    role: str | None
    home: str | None
    modules: list[ModuleLink]


class PermissionCheckResponse(BaseModel):
    permission_type: PermissionType
    permission_id: str
    role: str | None
    allowed: bool


async def _visible_modules(
    request: Request, snapshot: SessionSnapshot, runtime: AccessRuntime, nav_id: str
) -> list[ModuleLink]:
    ctx = runtime.guard_context(snapshot, attempted_path=request.url.path, navigation_id=nav_id)
    visible: list[ModuleLink] = []
    for module_id, route in CONSOLE_MODULES:
        if await _MODULE_GATES[module_id].allows(snapshot, ctx):
            visible.append(ModuleLink(id=module_id, route=route))
    return visible


def _require_ready(snapshot: SessionSnapshot, settings: Settings, path: str) -> Response | None:
    state = snapshot.state
    if state is SessionState.unauthenticated:
        return outcome_response(Redirect(settings.login_path, state={"from": path}))
    if state is not SessionState.ready:
        return outcome_response(Loading())
    return None


@router.get("/")
async def root(
    snapshot: SessionSnapshot = Depends(current_session),
    settings: Settings = Depends(settings_dep),
) -> Response:
    target = root_redirect(snapshot, landing_path=settings.landing_path)
    if target is None:
        return outcome_response(Loading())
    return RedirectResponse(url=target, status_code=HTTP_303_SEE_OTHER)


@router.get("/dashboard")
async def dashboard(
    request: Request,
    snapshot: SessionSnapshot = Depends(current_session),
    runtime: AccessRuntime = Depends(access_runtime),
    settings: Settings = Depends(settings_dep),
    nav_id: str = Depends(navigation_id),
) -> Any:
    blocked = _require_ready(snapshot, settings, request.url.path)
    if blocked is not None:
        return blocked

    target = smart_redirect(snapshot.role, request.url.path)
    if target is not None:
        return outcome_response(Redirect(target, state={"from": request.url.path}))
    modules = await _visible_modules(request, snapshot, runtime, nav_id)
    return {"view": "dashboard", "role": snapshot.role, "modules": [m.model_dump() for m in modules]}


@router.get("/home")
async def home(
    request: Request,
    snapshot: SessionSnapshot = Depends(current_session),
    runtime: AccessRuntime = Depends(access_runtime),
    settings: Settings = Depends(settings_dep),
    nav_id: str = Depends(navigation_id),
) -> Any:
    blocked = _require_ready(snapshot, settings, request.url.path)
    if blocked is not None:
        return blocked
    modules = await _visible_modules(request, snapshot, runtime, nav_id)
    return {"view": "home", "role": snapshot.role, "modules": [m.model_dump() for m in modules]}


@router.get("/v1/session", response_model=SessionResponse)
async def session_info(
    request: Request,
    snapshot: SessionSnapshot = Depends(current_session),
    runtime: AccessRuntime = Depends(access_runtime),
    nav_id: str = Depends(navigation_id),
) -> SessionResponse:
    ready = snapshot.state is SessionState.ready
    return SessionResponse(
        state=snapshot.state.value,
        user_id=snapshot.identity.id if snapshot.identity else None,
        email=snapshot.identity.email if snapshot.identity else None,
        role=snapshot.role,
        home=route_for_role(snapshot.role) if ready else None,
        modules=await _visible_modules(request, snapshot, runtime, nav_id) if ready else [],
    )


@router.get("/v1/permissions/check", response_model=PermissionCheckResponse)
async def check_permission(
    permission_type: PermissionType = Query(alias="type"),
    permission_id: str = Query(alias="id", min_length=1),
    resolver: PermissionResolver = Depends(permission_resolver),
) -> PermissionCheckResponse:
    return PermissionCheckResponse(
        permission_type=permission_type,
        permission_id=permission_id,
        role=resolver.role,
        allowed=resolver.has_permission(permission_type, permission_id),
    )
