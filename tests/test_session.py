"""
tests.test_session

SessionProvider: state transitions, role lookup errors and stale-lookup discarding.
"""

from __future__ import annotations

import asyncio

import pytest
from conftest import FakeAuthService

from ops_console.access.roles import Role
from ops_console.access.session import Identity, SessionProvider, SessionSnapshot, SessionState

ALICE = Identity(id="alice")
BOB = Identity(id="bob")


def test_snapshot_states() -> None:
    assert SessionSnapshot.pending().state is SessionState.loading
    assert SessionSnapshot.anonymous().state is SessionState.unauthenticated
    assert SessionSnapshot.authenticated(ALICE, None).state is SessionState.role_pending
    assert SessionSnapshot.authenticated(ALICE, Role.bi).state is SessionState.ready


@pytest.mark.asyncio
async def test_start_resolves_identity_then_role() -> None:
    auth = FakeAuthService(ALICE, {"alice": Role.supply})
    provider = SessionProvider(auth)
    assert provider.snapshot.state is SessionState.loading

    snapshot = await provider.start()

    assert snapshot.state is SessionState.ready
    assert snapshot.identity == ALICE
    assert snapshot.role == "supply"


@pytest.mark.asyncio
async def test_no_identity_is_unauthenticated() -> None:
    provider = SessionProvider(FakeAuthService(None))
    snapshot = await provider.start()

    assert snapshot.state is SessionState.unauthenticated
    assert snapshot.role is None


@pytest.mark.asyncio
async def test_role_pending_while_lookup_in_flight() -> None:
    auth = FakeAuthService(ALICE, {"alice": Role.custodio})
    auth.gates["alice"] = asyncio.Event()
    provider = SessionProvider(auth)

    starting = asyncio.create_task(provider.start())
    await asyncio.sleep(0)
    assert provider.snapshot.state is SessionState.role_pending

    auth.gates["alice"].set()
    await starting
    assert provider.snapshot.role == "custodio"


@pytest.mark.asyncio
async def test_role_lookup_error_stays_pending() -> None:
    auth = FakeAuthService(ALICE, {"alice": Role.supply})
    auth.failing.add("alice")
    provider = SessionProvider(auth)

    snapshot = await provider.start()

    assert snapshot.state is SessionState.role_pending
    assert snapshot.loading is False


@pytest.mark.asyncio
async def test_stale_role_lookup_is_discarded() -> None:
    auth = FakeAuthService(ALICE, {"alice": Role.admin, "bob": Role.custodio})
    auth.gates["alice"] = asyncio.Event()
    provider = SessionProvider(auth)

    starting = asyncio.create_task(provider.start())
    await asyncio.sleep(0)

    auth.emit(BOB)
    await provider.wait_idle()
    assert provider.snapshot.identity == BOB
    assert provider.snapshot.role == "custodio"

    # Alice's lookup completes late and must not overwrite Bob's role.
    auth.gates["alice"].set()
    await starting
    assert provider.snapshot.identity == BOB
    assert provider.snapshot.role == "custodio"
    provider.stop()


@pytest.mark.asyncio
async def test_sign_out_clears_role_and_reports_change() -> None:
    changes: list[tuple[str | None, str | None]] = []
    auth = FakeAuthService(ALICE, {"alice": Role.supply})
    provider = SessionProvider(auth, on_role_change=lambda old, new: changes.append((old, new)))
    await provider.start()

    auth.emit(None)
    await provider.wait_idle()

    assert provider.snapshot.state is SessionState.unauthenticated
    assert changes == [(None, "supply"), ("supply", None)]


@pytest.mark.asyncio
async def test_refresh_role_picks_up_new_assignment() -> None:
    auth = FakeAuthService(ALICE, {"alice": Role.supply})
    provider = SessionProvider(auth)
    await provider.start()

    auth.roles["alice"] = Role.supply_admin
    snapshot = await provider.refresh_role()

    assert snapshot.role == "supply_admin"


@pytest.mark.asyncio
async def test_stop_unsubscribes() -> None:
    auth = FakeAuthService(ALICE, {"alice": Role.supply})
    provider = SessionProvider(auth)
    await provider.start()
    provider.stop()

    auth.emit(BOB)
    await provider.wait_idle()
    assert provider.snapshot.identity == ALICE
