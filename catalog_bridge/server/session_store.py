"""
Session store for the HTTP front-end.

Thread-safe mapping from session identifier to the handler bound to it.
Owned and injected by the HTTP transport rather than kept as module state, so
several independent servers (or tests) can each have their own store.

Records expire after an idle period measured from the last lookup that
routed a request to them. The clock is injectable.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class SessionRecord:
    """One live session.

    Attributes:
        session_id: Opaque identifier minted at session creation
        handler: Transport/protocol handler bound to this session
        created_at: Clock value at registration
        last_seen: Clock value of the last routed request
    """

    session_id: str
    handler: Any
    created_at: float
    last_seen: float


class SessionStore:
    """Thread-safe session store with idle eviction."""

    def __init__(
        self,
        idle_timeout_s: float | None = 1800.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            idle_timeout_s: Idle time after which a record expires (None disables expiry)
            clock: Monotonic clock returning seconds
        """
        self._lock = Lock()
        self._records: dict[str, SessionRecord] = {}
        self.idle_timeout_s = idle_timeout_s
        self._clock = clock

    def _is_expired(self, record: SessionRecord, now: float) -> bool:
        if self.idle_timeout_s is None:
            return False
        return now - record.last_seen >= self.idle_timeout_s

    def insert_if_absent(self, session_id: str, handler: Any) -> bool:
        """
        Register a handler under a session identifier.

        Returns:
            True if inserted, False if the identifier is already taken
        """
        with self._lock:
            if session_id in self._records:
                return False

            now = self._clock()
            self._records[session_id] = SessionRecord(
                session_id=session_id,
                handler=handler,
                created_at=now,
                last_seen=now,
            )
            return True

    def get(self, session_id: str) -> Any | None:
        """
        Look up the handler for a session and mark it as used.

        Expired records are reported as absent; they stay in the store until
        ``evict_expired`` removes them so their handlers can be closed.
        """
        with self._lock:
            record = self._records.get(session_id)
            if record is None:
                return None

            now = self._clock()
            if self._is_expired(record, now):
                return None

            record.last_seen = now
            return record.handler

    def remove(self, session_id: str) -> SessionRecord | None:
        """Remove a session and return its record."""
        with self._lock:
            return self._records.pop(session_id, None)

    def evict_expired(self) -> list[SessionRecord]:
        """Remove and return every expired record."""
        with self._lock:
            now = self._clock()
            expired = [r for r in self._records.values() if self._is_expired(r, now)]
            for record in expired:
                del self._records[record.session_id]
            return expired

    def drain(self) -> list[SessionRecord]:
        """Remove and return every record."""
        with self._lock:
            records = list(self._records.values())
            self._records.clear()
            return records

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._records)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def get_stats(self) -> dict[str, Any]:
        """Get statistics about the current sessions."""
        with self._lock:
            now = self._clock()
            return {
                "active_sessions": len(self._records),
                "expired_pending": sum(
                    1 for r in self._records.values() if self._is_expired(r, now)
                ),
                "idle_timeout_s": self.idle_timeout_s,
            }
