"""
ops_console.access.audit

Fire-and-forget audit dispatch.

Responsibilities:
- Define the audit entry shape and the `AuditSink` collaborator.
- Issue each write at most once per navigation token without blocking the caller.
- Absorb sink failures (log only).
"""

from __future__ import annotations

import asyncio
import enum
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from ops_console.observability.logging import get_logger

log = get_logger(__name__)


class AuditAction(enum.StrEnum):
    blocked_role_access = "blocked_role_access"
    role_change = "role_change"


@dataclass(frozen=True, slots=True)
class AuditEntry:
    user_id: str
    action: str
    old_role: str | None
    new_role: str | None
    reason: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


class AuditSink(Protocol):
    async def append(self, entry: AuditEntry) -> None: ...


class AuditDispatcher:
    def __init__(self, sink: AuditSink, *, max_tokens: int = 10_000) -> None:
        self._sink = sink
        self._max_tokens = max_tokens
        self._sent: OrderedDict[str, None] = OrderedDict()
        self._pending: set[asyncio.Task[None]] = set()

    def submit(self, entry: AuditEntry, *, token: str) -> bool:
        """
        Schedule `entry` unless `token` was already used. Returns True when a write was queued.
        Must be called from inside a running event loop.
        """

        if token in self._sent:
            return False
        self._sent[token] = None
        while len(self._sent) > self._max_tokens:
            self._sent.popitem(last=False)

        task = asyncio.get_running_loop().create_task(self._write(entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return True

    async def drain(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _write(self, entry: AuditEntry) -> None:
        try:
            await self._sink.append(entry)
        except Exception:
            log.warning(
                "audit_write_failed",
                user_id=entry.user_id,
                action=entry.action,
                exc_info=True,
            )
            return
        log.info("audit_written", user_id=entry.user_id, action=entry.action)


# --- Module Notes -----------------------------------------------------------
# The token set is bounded (oldest tokens evicted first) so a long-lived process does not
# grow without limit; navigation ids are unique per request so eviction never re-sends.
