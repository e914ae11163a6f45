"""
ops_console.access.guards

One guard abstraction over three access conditions.

Responsibilities:
- Model conditions as data: permission, role-not-in (blocked roles) and skill set.
- Run the shared state machine LOADING / UNAUTHENTICATED / AUTHORIZED / DENIED.
- Produce an outcome (render, loading, denied panel, fallback, redirect); the role-block
  branch also issues its audit command as part of the redirect decision.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol

from ops_console.access.audit import AuditAction, AuditDispatcher, AuditEntry
from ops_console.access.permissions import PermissionResolver
from ops_console.access.roles import PermissionType
from ops_console.access.session import Identity, SessionSnapshot, SessionState
from ops_console.observability.logging import get_logger

log = get_logger(__name__)

DEFAULT_DENIED_TITLE = "Acceso denegado"
DEFAULT_DENIED_MESSAGE = "No tienes permisos para ver esta sección."


# --- Conditions -------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PermissionCondition:
    permission_type: PermissionType
    permission_id: str


@dataclass(frozen=True, slots=True)
class RoleNotIn:
    blocked_roles: frozenset[str]
    redirect_map: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def of(cls, blocked_roles: Iterable[str], redirect_map: Mapping[str, str] | None = None) -> RoleNotIn:
        return cls(
            blocked_roles=frozenset(str(r) for r in blocked_roles),
            redirect_map=MappingProxyType({str(k): v for k, v in (redirect_map or {}).items()}),
        )

    def redirect_for(self, role: str) -> str:
        return self.redirect_map.get(role, "/")


@dataclass(frozen=True, slots=True)
class SkillSet:
    required: frozenset[str]
    require_all: bool = False

    @classmethod
    def of(cls, required: Iterable[str], *, require_all: bool = False) -> SkillSet:
        return cls(required=frozenset(str(s) for s in required), require_all=require_all)

    def satisfied_by(self, held: Iterable[str]) -> bool:
        held_set = {str(s) for s in held}
        if self.require_all:
            return self.required <= held_set
        # Vacuous OR: an empty requirement is never satisfied.
        return bool(self.required & held_set)


Condition = PermissionCondition | RoleNotIn | SkillSet


# --- Outcomes ---------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Render:
    pass


@dataclass(frozen=True, slots=True)
class Loading:
    pass


@dataclass(frozen=True, slots=True)
class DeniedPanel:
    title: str
    message: str
    back_path: str


@dataclass(frozen=True, slots=True)
class Fallback:
    pass


@dataclass(frozen=True, slots=True)
class Redirect:
    path: str
    replace: bool = True
    state: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


GuardOutcome = Render | Loading | DeniedPanel | Fallback | Redirect


# --- Collaborators ----------------------------------------------------------


class SkillDirectory(Protocol):
    async def skills_for(self, user_id: str) -> set[str]: ...


@dataclass(slots=True)
class GuardContext:
    attempted_path: str
    navigation_id: str
    resolver: PermissionResolver
    skills: SkillDirectory | None = None
    audit: AuditDispatcher | None = None
    login_path: str = "/login"
    default_fallback_path: str = "/home"


# --- Guard ------------------------------------------------------------------


class AccessGuard:
    """
    Decide what a protected view gets for a given session snapshot.

    - `show_denied_message` renders the static panel on denial and wins over `fallback_path`.
    - `render_fallback` is the conditional-render variant: it never redirects, it just
      renders the fallback content when the condition does not hold.
    """

    def __init__(
        self,
        condition: Condition,
        *,
        fallback_path: str | None = None,
        show_denied_message: bool = False,
        render_fallback: bool = False,
        denied_title: str = DEFAULT_DENIED_TITLE,
        denied_message: str = DEFAULT_DENIED_MESSAGE,
    ) -> None:
        self.condition = condition
        self.fallback_path = fallback_path
        self.show_denied_message = show_denied_message
        self.render_fallback = render_fallback
        self.denied_title = denied_title
        self.denied_message = denied_message

    async def evaluate(self, snapshot: SessionSnapshot, ctx: GuardContext) -> GuardOutcome:
        state = snapshot.state
        if state in (SessionState.loading, SessionState.role_pending):
            return Loading()

        if state is SessionState.unauthenticated:
            if isinstance(self.condition, RoleNotIn):
                # Authentication is an upstream guard's job; this one only blocks roles.
                return Render()
            if self.render_fallback:
                return Fallback()
            return Redirect(ctx.login_path, replace=True, state={"from": ctx.attempted_path})

        identity, role = snapshot.identity, snapshot.role
        if identity is None or role is None:
            return Loading()

        if isinstance(self.condition, RoleNotIn):
            return self._evaluate_role_block(identity, role, ctx, self.condition)

        if await self._holds(snapshot, ctx):
            return Render()
        return self._denied(snapshot, ctx)

    async def allows(self, snapshot: SessionSnapshot, ctx: GuardContext) -> bool:
        return isinstance(await self.evaluate(snapshot, ctx), Render)

    async def _holds(self, snapshot: SessionSnapshot, ctx: GuardContext) -> bool:
        cond = self.condition
        if isinstance(cond, PermissionCondition):
            await ctx.resolver.ensure_loaded()
            return ctx.resolver.has_permission(cond.permission_type, cond.permission_id)

        if isinstance(cond, SkillSet):
            held = await _held_skills(snapshot, ctx)
            return cond.satisfied_by(held)

        raise TypeError(f"unsupported condition: {cond!r}")

    def _evaluate_role_block(
        self, identity: Identity, role: str, ctx: GuardContext, cond: RoleNotIn
    ) -> GuardOutcome:
        if role not in cond.blocked_roles:
            return Render()

        target = cond.redirect_for(role)
        log.warning(
            "role_blocked",
            role=role,
            attempted_path=ctx.attempted_path,
            redirect_to=target,
        )
        if ctx.audit is not None:
            ctx.audit.submit(
                AuditEntry(
                    user_id=identity.id,
                    action=AuditAction.blocked_role_access,
                    old_role=role,
                    new_role=role,
                    reason=f"blocked role attempted {ctx.attempted_path}",
                ),
                token=f"{ctx.navigation_id}:{ctx.attempted_path}",
            )
        return Redirect(
            target,
            replace=True,
            state={"from": ctx.attempted_path, "blocked_role": role},
        )

    def _denied(self, snapshot: SessionSnapshot, ctx: GuardContext) -> GuardOutcome:
        log.info(
            "access_denied",
            role=snapshot.role,
            attempted_path=ctx.attempted_path,
            condition=type(self.condition).__name__,
        )
        if self.show_denied_message:
            return DeniedPanel(
                title=self.denied_title,
                message=self.denied_message,
                back_path=self.fallback_path or ctx.default_fallback_path,
            )
        if self.render_fallback:
            return Fallback()
        return Redirect(
            self.fallback_path or ctx.default_fallback_path,
            replace=True,
            state={"from": ctx.attempted_path},
        )


async def _held_skills(snapshot: SessionSnapshot, ctx: GuardContext) -> set[str]:
    if ctx.skills is None or snapshot.identity is None:
        return set()
    try:
        return {str(s) for s in await ctx.skills.skills_for(snapshot.identity.id)}
    except Exception:
        log.warning("skill_fetch_failed", user_id=snapshot.identity.id, exc_info=True)
        return set()


def permission_guard(
    permission_type: PermissionType, permission_id: str, **options: Any
) -> AccessGuard:
    return AccessGuard(PermissionCondition(permission_type, permission_id), **options)


def role_block_guard(
    blocked_roles: Iterable[str], redirect_map: Mapping[str, str] | None = None
) -> AccessGuard:
    return AccessGuard(RoleNotIn.of(blocked_roles, redirect_map))


def skill_guard(required: Iterable[str], *, require_all: bool = False, **options: Any) -> AccessGuard:
    return AccessGuard(SkillSet.of(required, require_all=require_all), **options)


# --- Module Notes -----------------------------------------------------------
# Outcomes are plain data so the HTTP layer (api.guards) and any other front end can map
# them to their own redirect/denied rendering without re-implementing the decision.
