"""
ops_console.access.permissions

Role-scoped permission resolution.

Responsibilities:
- Load a role's permission rows once and memoize them (`PermissionCache`).
- Coalesce concurrent loads for the same role into a single in-flight fetch.
- Answer `has_permission(type, id)` for a bound role with the admin/owner override
  and default-deny for missing rows (`PermissionResolver`).
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Protocol

from ops_console.access.roles import PermissionType, is_admin_override
from ops_console.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PermissionRow:
    permission_type: str
    permission_id: str
    allowed: bool


class PermissionStore(Protocol):
    async def fetch_permissions_for_role(self, role: str) -> list[PermissionRow]: ...


@dataclass(frozen=True, slots=True)
class RolePermissionSet:
    role: str
    grants: Mapping[tuple[str, str], bool]

    @classmethod
    def from_rows(cls, role: str, rows: Iterable[PermissionRow]) -> RolePermissionSet:
        grants: dict[tuple[str, str], bool] = {}
        for row in rows:
            grants[(str(row.permission_type), str(row.permission_id))] = bool(row.allowed)
        return cls(role=role, grants=MappingProxyType(grants))

    @classmethod
    def empty(cls, role: str) -> RolePermissionSet:
        return cls(role=role, grants=MappingProxyType({}))

    def allows(self, permission_type: str, permission_id: str) -> bool:
        return self.grants.get((str(permission_type), permission_id), False)


class PermissionCache:
    """
    Process-wide permission sets keyed by role value.

    Keying by role (instead of by "current user") means a fetch started for an old role can
    never answer for a new one. `invalidate` is the explicit refresh hook used after admin
    edits and role changes.
    """

    def __init__(self, store: PermissionStore) -> None:
        self._store = store
        self._sets: dict[str, RolePermissionSet] = {}
        self._inflight: dict[str, asyncio.Task[RolePermissionSet]] = {}
        self._epochs: dict[str, int] = {}

    def peek(self, role: str) -> RolePermissionSet | None:
        return self._sets.get(role)

    async def load(self, role: str) -> RolePermissionSet:
        cached = self._sets.get(role)
        if cached is not None:
            return cached

        task = self._inflight.get(role)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._fetch(role, self._epochs.get(role, 0)))
            self._inflight[role] = task
            task.add_done_callback(lambda t, r=role: self._forget(r, t))
        # shield: one waiter being cancelled must not cancel the shared fetch.
        return await asyncio.shield(task)

    def invalidate(self, role: str | None = None) -> None:
        roles = [role] if role is not None else list({*self._sets, *self._inflight})
        for r in roles:
            self._sets.pop(r, None)
            self._inflight.pop(r, None)
            self._epochs[r] = self._epochs.get(r, 0) + 1
        log.info("permission_cache_invalidated", role=role or "*")

    async def _fetch(self, role: str, epoch: int) -> RolePermissionSet:
        try:
            rows = await self._store.fetch_permissions_for_role(role)
        except Exception:
            # Default-deny until a later load succeeds; failures are not memoized.
            log.warning("permission_fetch_failed", role=role, exc_info=True)
            return RolePermissionSet.empty(role)

        perm_set = RolePermissionSet.from_rows(role, rows)
        if self._epochs.get(role, 0) == epoch:
            self._sets[role] = perm_set
        else:
            log.debug("permission_fetch_discarded", role=role)
        return perm_set

    def _forget(self, role: str, task: asyncio.Task[RolePermissionSet]) -> None:
        if self._inflight.get(role) is task:
            del self._inflight[role]


class PermissionResolver:
    """Answers permission questions for exactly one role value."""

    def __init__(self, cache: PermissionCache, role: str | None) -> None:
        self._cache = cache
        self._role = role
        self._loaded: RolePermissionSet | None = None

    @property
    def role(self) -> str | None:
        return self._role

    async def ensure_loaded(self) -> None:
        if self._role is None or is_admin_override(self._role):
            return
        self._loaded = await self._cache.load(self._role)

    def has_permission(self, permission_type: PermissionType | str, permission_id: str) -> bool:
        if self._role is None:
            return False
        if is_admin_override(self._role):
            return True
        perm_set = self._loaded or self._cache.peek(self._role)
        if perm_set is None:
            return False
        return perm_set.allows(permission_type, permission_id)

    def has_page_access(self, page_id: str) -> bool:
        return self.has_permission(PermissionType.page, page_id)

    def has_feature_access(self, feature_id: str) -> bool:
        return self.has_permission(PermissionType.feature, feature_id)

    def has_action_access(self, action_id: str) -> bool:
        return self.has_permission(PermissionType.action, action_id)

    def has_module_access(self, module_id: str) -> bool:
        return self.has_permission(PermissionType.module, module_id)


# --- Module Notes -----------------------------------------------------------
# Missing rows and explicit `allowed=False` rows both deny; there is no deny-override layer
# because nothing grants by default outside ADMIN_OVERRIDE_ROLES.
