"""
ops_console.access.redirects

Role-based redirect policy (pure functions, safe to call while building a response).
"""

from __future__ import annotations

from ops_console.access.roles import (
    DASHBOARD_ROOTS,
    DEFAULT_HOME_ROUTE,
    ROLE_HOME_ROUTES,
    SMART_REDIRECT_ROUTES,
)
from ops_console.access.session import SessionSnapshot, SessionState


def route_for_role(role: str | None) -> str:
    if role is None:
        return DEFAULT_HOME_ROUTE
    return ROLE_HOME_ROUTES.get(role, DEFAULT_HOME_ROUTE)


def root_redirect(snapshot: SessionSnapshot, *, landing_path: str) -> str | None:
    """
    Where a visit to `/` should go. None means "not decided yet" (session or role still
    resolving); callers render a neutral loading state in that case.
    """

    state = snapshot.state
    if state is SessionState.unauthenticated:
        return landing_path
    if state is SessionState.ready:
        return route_for_role(snapshot.role)
    return None


def smart_redirect(role: str | None, current_path: str) -> str | None:
    if role is None or _normalize(current_path) not in DASHBOARD_ROOTS:
        return None
    target = SMART_REDIRECT_ROUTES.get(role)
    if target is None or target == _normalize(current_path):
        return None
    return target


def _normalize(path: str) -> str:
    stripped = path.rstrip("/")
    return stripped or "/"
