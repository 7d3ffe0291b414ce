"""
Session Store

Process-wide mapping from contact id to the active dialog. Absence of a
session means the contact is idle at the main menu.
"""
import asyncio
import logging
import time
import weakref
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable

log = logging.getLogger(__name__)


class Flow(str, Enum):
    SCHEDULE_APPOINTMENT = "schedule_appointment"
    SCHEDULE_FOLLOW_UP = "schedule_follow_up"
    PRICE_LOOKUP = "price_lookup"
    PROCEDURE_LOOKUP = "procedure_lookup"


class Step(str, Enum):
    NAME = "name"
    DOCTOR = "doctor"
    TIME = "time"
    DAY = "day"
    QUERY = "query"


@dataclass
class Session:
    flow: Flow
    step: Step
    collected: dict[str, str] = field(default_factory=dict)
    touched_at: float = 0.0

    def copy(self) -> "Session":
        return replace(self, collected=dict(self.collected))


class SessionStore:
    """
    In-memory sessions keyed by contact id

    Sessions idle longer than `idle_timeout` seconds are dropped on access.
    A timeout of 0 (or None) keeps sessions until their flow ends.
    """

    def __init__(self, idle_timeout: float | None = None, clock: Callable[[], float] = time.monotonic):
        self._sessions: dict[str, Session] = {}
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self.idle_timeout = idle_timeout or 0
        self._clock = clock

    def _expired(self, sess: Session) -> bool:
        return bool(self.idle_timeout) and self._clock() - sess.touched_at > self.idle_timeout

    def get(self, contact_id: str) -> Session | None:
        sess = self._sessions.get(contact_id)
        if sess and self._expired(sess):
            log.info(f"[SESSION] Evicting idle session for {contact_id} (flow={sess.flow.value}, step={sess.step.value})")
            del self._sessions[contact_id]
            return None
        return sess

    def set(self, contact_id: str, sess: Session) -> None:
        sess.touched_at = self._clock()
        self._sessions[contact_id] = sess

    def delete(self, contact_id: str) -> bool:
        return self._sessions.pop(contact_id, None) is not None

    def purge_expired(self) -> int:
        stale = [cid for cid, sess in self._sessions.items() if self._expired(sess)]
        for cid in stale:
            del self._sessions[cid]
        if stale:
            log.info(f"[SESSION] Purged {len(stale)} idle sessions")
        return len(stale)

    def lock(self, contact_id: str) -> asyncio.Lock:
        """Per-contact lock; hold it for the whole turn. Dropped once nobody references it."""
        lock = self._locks.get(contact_id)
        if lock is None:
            lock = self._locks[contact_id] = asyncio.Lock()
        return lock

    def __contains__(self, contact_id: str) -> bool:
        return self.get(contact_id) is not None

    def __len__(self) -> int:
        return len(self._sessions)
