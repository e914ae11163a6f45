"""
ops_console.access.session

Session/role provider.

Responsibilities:
- Expose `{identity, role, loading}` as one immutable `SessionSnapshot`.
- Model the "authenticated, role pending" state separately from "loading".
- Re-resolve the role when the auth collaborator reports an identity change, and
  discard role lookups that finish after the identity moved on.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from ops_console.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Identity:
    id: str
    email: str | None = None


class SessionState(enum.StrEnum):
    loading = "LOADING"
    unauthenticated = "UNAUTHENTICATED"
    role_pending = "ROLE_PENDING"
    ready = "READY"


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    identity: Identity | None
    role: str | None
    loading: bool

    @property
    def state(self) -> SessionState:
        if self.loading:
            return SessionState.loading
        if self.identity is None:
            return SessionState.unauthenticated
        if self.role is None:
            return SessionState.role_pending
        return SessionState.ready

    @classmethod
    def pending(cls) -> SessionSnapshot:
        return cls(identity=None, role=None, loading=True)

    @classmethod
    def anonymous(cls) -> SessionSnapshot:
        return cls(identity=None, role=None, loading=False)

    @classmethod
    def authenticated(cls, identity: Identity, role: str | None) -> SessionSnapshot:
        return cls(identity=identity, role=role, loading=False)


IdentityCallback = Callable[[Identity | None], None]
RoleChangeHook = Callable[[str | None, str | None], None]


class AuthService(Protocol):
    async def get_current_identity(self) -> Identity | None: ...

    async def get_role_for_identity(self, user_id: str) -> str | None: ...

    def subscribe(self, callback: IdentityCallback) -> Callable[[], None]: ...


class SessionProvider:
    """
    Owns the session snapshot for one client/session.

    The snapshot only moves forward through LOADING -> (UNAUTHENTICATED | ROLE_PENDING -> READY);
    a role lookup error leaves it in ROLE_PENDING, which guards render as "loading".
    """

    def __init__(self, auth: AuthService, *, on_role_change: RoleChangeHook | None = None) -> None:
        self._auth = auth
        self._on_role_change = on_role_change
        self._snapshot = SessionSnapshot.pending()
        self._generation = 0
        self._unsubscribe: Callable[[], None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    async def start(self) -> SessionSnapshot:
        if self._unsubscribe is None:
            self._unsubscribe = self._auth.subscribe(self._identity_changed)
        try:
            identity = await self._auth.get_current_identity()
        except Exception:
            log.warning("session_identity_lookup_failed", exc_info=True)
            identity = None
        await self._apply_identity(identity)
        return self._snapshot

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in list(self._tasks):
            task.cancel()

    async def refresh_role(self) -> SessionSnapshot:
        identity = self._snapshot.identity
        if identity is None:
            return self._snapshot
        await self._resolve_role(identity, self._generation)
        return self._snapshot

    async def wait_idle(self) -> None:
        # Lets callers (and tests) observe the result of callback-triggered resolution.
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _identity_changed(self, identity: Identity | None) -> None:
        task = asyncio.get_running_loop().create_task(self._apply_identity(identity))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _apply_identity(self, identity: Identity | None) -> None:
        self._generation += 1
        generation = self._generation
        if identity is None:
            self._set(SessionSnapshot.anonymous())
            return
        self._set(SessionSnapshot.authenticated(identity, None))
        await self._resolve_role(identity, generation)

    async def _resolve_role(self, identity: Identity, generation: int) -> None:
        try:
            role = await self._auth.get_role_for_identity(identity.id)
        except Exception:
            log.warning("session_role_lookup_failed", user_id=identity.id, exc_info=True)
            return
        if generation != self._generation:
            # The identity changed while this lookup was in flight.
            log.debug("session_role_lookup_stale", user_id=identity.id)
            return
        self._set(SessionSnapshot.authenticated(identity, role))

    def _set(self, snapshot: SessionSnapshot) -> None:
        previous = self._snapshot.role
        self._snapshot = snapshot
        if previous != snapshot.role and self._on_role_change is not None:
            self._on_role_change(previous, snapshot.role)


# --- Module Notes -----------------------------------------------------------
# The HTTP layer builds one provider per request (identity from the bearer token, role from
# the role directory); long-lived clients keep one provider subscribed to auth changes.
