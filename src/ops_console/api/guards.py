"""
ops_console.api.guards

HTTP adapter for `access.guards`.

Responsibilities:
- Dependency factories (`guard`, `require_permission`, `block_roles`, `require_skills`)
  that evaluate an `AccessGuard` for the requested path.
- Map non-render outcomes onto responses: redirect (303, history-replacing), denied
  panel (403), neutral loading (202), hidden fallback (204).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from starlette.status import (
    HTTP_202_ACCEPTED,
    HTTP_204_NO_CONTENT,
    HTTP_303_SEE_OTHER,
    HTTP_403_FORBIDDEN,
)

from ops_console.access.guards import (
    AccessGuard,
    Condition,
    DeniedPanel,
    Fallback,
    GuardOutcome,
    Loading,
    PermissionCondition,
    Redirect,
    Render,
    RoleNotIn,
    SkillSet,
)
from ops_console.access.roles import PermissionType
from ops_console.access.session import SessionSnapshot
from ops_console.api.deps import access_runtime, current_session, navigation_id
from ops_console.services.access_service import AccessRuntime

REDIRECT_FROM_HEADER = "x-redirect-from"
BLOCKED_ROLE_HEADER = "x-blocked-role"


class GuardInterrupt(Exception):
    """Raised by guard dependencies to short-circuit the endpoint with `outcome`."""

    def __init__(self, outcome: GuardOutcome) -> None:
        super().__init__(type(outcome).__name__)
        self.outcome = outcome


def outcome_response(outcome: GuardOutcome) -> Response:
    if isinstance(outcome, Redirect):
        # 303 turns the guarded URL into a GET on the target; the denied URL is not kept.
        response = RedirectResponse(url=outcome.path, status_code=HTTP_303_SEE_OTHER)
        attempted = outcome.state.get("from")
        if attempted:
            response.headers[REDIRECT_FROM_HEADER] = str(attempted)
        blocked = outcome.state.get("blocked_role")
        if blocked:
            response.headers[BLOCKED_ROLE_HEADER] = str(blocked)
        return response
    if isinstance(outcome, DeniedPanel):
        return JSONResponse(
            status_code=HTTP_403_FORBIDDEN,
            content={
                "title": outcome.title,
                "message": outcome.message,
                "back_path": outcome.back_path,
            },
        )
    if isinstance(outcome, Loading):
        return JSONResponse(
            status_code=HTTP_202_ACCEPTED,
            content={"status": "loading"},
            headers={"Retry-After": "1"},
        )
    if isinstance(outcome, Fallback):
        return Response(status_code=HTTP_204_NO_CONTENT)
    raise ValueError(f"no response for outcome {outcome!r}")


def install_guard_handlers(app: FastAPI) -> None:
    @app.exception_handler(GuardInterrupt)
    async def _guard_interrupt(_: Request, exc: GuardInterrupt) -> Response:
        return outcome_response(exc.outcome)


def guard(
    condition: Condition,
    *,
    fallback_path: str | None = None,
    show_denied_message: bool = False,
):
    access_guard = AccessGuard(
        condition, fallback_path=fallback_path, show_denied_message=show_denied_message
    )

    async def dependency(
        request: Request,
        snapshot: SessionSnapshot = Depends(current_session),
        runtime: AccessRuntime = Depends(access_runtime),
        nav_id: str = Depends(navigation_id),
    ) -> SessionSnapshot:
        ctx = runtime.guard_context(
            snapshot, attempted_path=request.url.path, navigation_id=nav_id
        )
        outcome = await access_guard.evaluate(snapshot, ctx)
        if isinstance(outcome, Render):
            return snapshot
        raise GuardInterrupt(outcome)

    dependency.access_guard = access_guard  # type: ignore[attr-defined]
    return dependency


def require_permission(
    permission_type: PermissionType, permission_id: str, **options: Any
):
    return guard(PermissionCondition(permission_type, permission_id), **options)


def block_roles(blocked_roles: Iterable[str], redirect_map: Mapping[str, str] | None = None):
    return guard(RoleNotIn.of(blocked_roles, redirect_map))


def require_skills(*skills: str, require_all: bool = False, **options: Any):
    return guard(SkillSet.of(skills, require_all=require_all), **options)


# --- Module Notes -----------------------------------------------------------
# FastAPI caches `current_session` per request, so stacking several guards on one route
# resolves the session (and role lookup) once.
