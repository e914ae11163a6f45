"""
tests.test_guards

AccessGuard state machine over the permission, role-block and skill conditions.
"""

from __future__ import annotations

import pytest
from conftest import FakeAuditSink, FakePermissionStore, FakeSkillDirectory, rows

from ops_console.access.audit import AuditAction
from ops_console.access.guards import (
    AccessGuard,
    DeniedPanel,
    Fallback,
    Loading,
    PermissionCondition,
    Redirect,
    Render,
    RoleNotIn,
    SkillSet,
    permission_guard,
    role_block_guard,
    skill_guard,
)
from ops_console.access.roles import PermissionType, Role, Skill
from ops_console.access.session import Identity, SessionSnapshot

USER = Identity(id="user-1", email="user@example.com")


def ready(role: str) -> SessionSnapshot:
    return SessionSnapshot.authenticated(USER, role)


# --- State machine ------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "snapshot",
    [SessionSnapshot.pending(), SessionSnapshot.authenticated(USER, None)],
    ids=["loading", "role_pending"],
)
@pytest.mark.parametrize(
    "guard",
    [
        permission_guard(PermissionType.page, "leads"),
        role_block_guard([Role.custodio]),
        skill_guard([Skill.wms_view]),
    ],
    ids=["permission", "role_block", "skills"],
)
async def test_unresolved_session_renders_loading(make_ctx, snapshot, guard) -> None:
    assert await guard.evaluate(snapshot, make_ctx(None)) == Loading()


@pytest.mark.asyncio
async def test_unauthenticated_redirects_to_login_with_origin(make_ctx) -> None:
    guard = permission_guard(PermissionType.page, "leads")
    outcome = await guard.evaluate(SessionSnapshot.anonymous(), make_ctx(None, path="/leads"))

    assert isinstance(outcome, Redirect)
    assert outcome.path == "/login"
    assert outcome.replace is True
    assert dict(outcome.state) == {"from": "/leads"}


@pytest.mark.asyncio
async def test_unauthenticated_role_block_defers(make_ctx) -> None:
    guard = role_block_guard([Role.custodio], {Role.custodio: "/custodian"})
    assert await guard.evaluate(SessionSnapshot.anonymous(), make_ctx(None)) == Render()


@pytest.mark.asyncio
async def test_conditional_render_hides_for_unauthenticated(make_ctx) -> None:
    guard = AccessGuard(PermissionCondition(PermissionType.page, "leads"), render_fallback=True)
    assert await guard.evaluate(SessionSnapshot.anonymous(), make_ctx(None)) == Fallback()


# --- Permission condition -----------------------------------------------------


@pytest.mark.asyncio
async def test_permission_granted_renders(store: FakePermissionStore, make_ctx) -> None:
    store.rows[Role.supply] = rows(("page", "leads", True))
    guard = permission_guard(PermissionType.page, "leads")

    assert await guard.evaluate(ready(Role.supply), make_ctx(Role.supply)) == Render()


@pytest.mark.asyncio
async def test_admin_renders_without_rows(store: FakePermissionStore, make_ctx) -> None:
    guard = permission_guard(PermissionType.action, "delete_everything")
    assert await guard.evaluate(ready(Role.admin), make_ctx(Role.admin)) == Render()
    assert store.calls == 0


@pytest.mark.asyncio
async def test_denied_redirects_to_default_fallback(make_ctx) -> None:
    guard = permission_guard(PermissionType.page, "leads")
    outcome = await guard.evaluate(ready(Role.soporte), make_ctx(Role.soporte, path="/leads"))

    assert outcome == Redirect("/home", replace=True, state={"from": "/leads"})


@pytest.mark.asyncio
async def test_denied_redirects_to_configured_fallback(make_ctx) -> None:
    guard = permission_guard(PermissionType.feature, "reporting", fallback_path="/dashboard/reports")
    outcome = await guard.evaluate(ready(Role.supply), make_ctx(Role.supply, path="/reports/export"))

    assert isinstance(outcome, Redirect)
    assert outcome.path == "/dashboard/reports"


@pytest.mark.asyncio
async def test_denied_message_wins_over_fallback_path(make_ctx) -> None:
    guard = permission_guard(
        PermissionType.page, "users", fallback_path="/settings", show_denied_message=True
    )
    outcome = await guard.evaluate(ready(Role.supply), make_ctx(Role.supply))

    assert isinstance(outcome, DeniedPanel)
    assert outcome.back_path == "/settings"
    assert outcome.title


@pytest.mark.asyncio
async def test_conditional_render_denied_is_fallback(make_ctx) -> None:
    guard = AccessGuard(PermissionCondition(PermissionType.page, "wms"), render_fallback=True)
    assert await guard.evaluate(ready(Role.supply), make_ctx(Role.supply)) == Fallback()
    assert await guard.allows(ready(Role.admin), make_ctx(Role.admin)) is True


# --- Role-block condition -----------------------------------------------------


@pytest.mark.asyncio
async def test_blocked_role_redirects_and_audits_once(sink: FakeAuditSink, make_ctx) -> None:
    guard = role_block_guard([Role.custodio], {Role.custodio: "/custodian-portal"})
    ctx = make_ctx(Role.custodio, path="/admin", navigation_id="nav-7")

    outcome = await guard.evaluate(ready(Role.custodio), ctx)
    assert outcome == Redirect(
        "/custodian-portal",
        replace=True,
        state={"from": "/admin", "blocked_role": "custodio"},
    )

    # Same navigation re-evaluated (re-render): no second write.
    await guard.evaluate(ready(Role.custodio), ctx)
    await make_ctx.audit.drain()

    assert len(sink.entries) == 1
    entry = sink.entries[0]
    assert entry.user_id == USER.id
    assert entry.action == AuditAction.blocked_role_access
    assert entry.old_role == entry.new_role == "custodio"
    assert "/admin" in entry.reason


@pytest.mark.asyncio
async def test_each_navigation_audits_separately(sink: FakeAuditSink, make_ctx) -> None:
    guard = role_block_guard([Role.custodio], {Role.custodio: "/custodian"})

    await guard.evaluate(ready(Role.custodio), make_ctx(Role.custodio, navigation_id="a"))
    await guard.evaluate(ready(Role.custodio), make_ctx(Role.custodio, navigation_id="b"))
    await make_ctx.audit.drain()

    assert len(sink.entries) == 2


@pytest.mark.asyncio
async def test_blocked_role_without_mapping_goes_to_root(make_ctx) -> None:
    guard = role_block_guard([Role.pending], {Role.custodio: "/custodian"})
    outcome = await guard.evaluate(ready(Role.pending), make_ctx(Role.pending))

    assert isinstance(outcome, Redirect)
    assert outcome.path == "/"


@pytest.mark.asyncio
async def test_unblocked_and_unknown_roles_render(sink: FakeAuditSink, make_ctx) -> None:
    guard = role_block_guard([Role.custodio])

    assert await guard.evaluate(ready(Role.supply), make_ctx(Role.supply)) == Render()
    assert await guard.evaluate(ready("legacy_role"), make_ctx("legacy_role")) == Render()
    await make_ctx.audit.drain()
    assert sink.entries == []


@pytest.mark.asyncio
async def test_audit_failure_does_not_block_redirect(sink: FakeAuditSink, make_ctx) -> None:
    sink.fail = True
    guard = role_block_guard([Role.instalador], {Role.instalador: "/installers/portal"})

    outcome = await guard.evaluate(ready(Role.instalador), make_ctx(Role.instalador))
    await make_ctx.audit.drain()

    assert isinstance(outcome, Redirect)
    assert outcome.path == "/installers/portal"
    assert sink.entries == []


def test_role_not_in_normalizes_enum_members() -> None:
    cond = RoleNotIn.of([Role.custodio], {Role.custodio: "/custodian"})
    assert "custodio" in cond.blocked_roles
    assert cond.redirect_for("custodio") == "/custodian"
    assert cond.redirect_for("admin") == "/"


# --- Skill condition ----------------------------------------------------------


@pytest.mark.parametrize(
    ("required", "require_all", "held", "expected"),
    [
        ({"a", "b"}, False, {"b"}, True),
        ({"a", "b"}, False, {"c"}, False),
        ({"a", "b"}, True, {"a"}, False),
        ({"a", "b"}, True, {"a", "b", "c"}, True),
        (set(), False, {"a"}, False),
        (set(), True, set(), True),
    ],
)
def test_skill_set_semantics(required, require_all, held, expected) -> None:
    assert SkillSet.of(required, require_all=require_all).satisfied_by(held) is expected


@pytest.mark.asyncio
async def test_skill_guard_uses_directory(skills: FakeSkillDirectory, make_ctx) -> None:
    skills.skills[USER.id] = {Skill.wms_view}
    any_of = skill_guard([Skill.wms_view, Skill.wms_manage])
    all_of = skill_guard([Skill.wms_view, Skill.wms_manage], require_all=True, show_denied_message=True)

    assert await any_of.evaluate(ready(Role.supply), make_ctx(Role.supply)) == Render()
    assert isinstance(await all_of.evaluate(ready(Role.supply), make_ctx(Role.supply)), DeniedPanel)


@pytest.mark.asyncio
async def test_skill_lookup_failure_denies(skills: FakeSkillDirectory, make_ctx) -> None:
    skills.skills[USER.id] = {Skill.wms_view}
    skills.fail = True
    guard = skill_guard([Skill.wms_view])

    outcome = await guard.evaluate(ready(Role.supply), make_ctx(Role.supply, path="/wms"))
    assert outcome == Redirect("/home", replace=True, state={"from": "/wms"})
