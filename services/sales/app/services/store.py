from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from uuid import uuid4

from services.sales.app.services.desk import SalesDesk
from services.sales.app.services.errors import OperationInProgressError

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TTL_S = 8 * 3600


@dataclass
class SessionRecord:
    session_id: str
    actor_id: str
    desk: SalesDesk
    lock: threading.Lock = field(default_factory=threading.Lock)
    last_used: float = field(default_factory=time.monotonic)


class SessionStore:
    """Open sales sessions, keyed by session id.

    Pending confirmations hold bound commit callbacks, so sessions live in process memory
    rather than in the journal database. A session untouched for ``idle_ttl_s`` seconds is
    dropped the next time a session is opened.
    """

    def __init__(
        self,
        idle_ttl_s: float = DEFAULT_IDLE_TTL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sessions: dict[str, SessionRecord] = {}
        self._guard = threading.Lock()
        self._idle_ttl_s = idle_ttl_s
        self._clock = clock

    def new_session_id(self) -> str:
        return uuid4().hex

    def add(self, record: SessionRecord) -> None:
        with self._guard:
            self._evict_idle()
            record.last_used = self._clock()
            self._sessions[record.session_id] = record

    def get(self, session_id: str) -> SessionRecord | None:
        with self._guard:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> SessionRecord | None:
        with self._guard:
            return self._sessions.pop(session_id, None)

    @contextmanager
    def checkout(self, session_id: str) -> Iterator[SessionRecord | None]:
        """Hold the session for one request; a concurrent request is refused, not queued."""

        record = self.get(session_id)
        if record is None:
            yield None
            return

        if not record.lock.acquire(blocking=False):
            raise OperationInProgressError("session")
        try:
            record.last_used = self._clock()
            yield record
        finally:
            record.lock.release()

    def clear(self) -> None:
        with self._guard:
            self._sessions.clear()

    def __len__(self) -> int:
        with self._guard:
            return len(self._sessions)

    def _evict_idle(self) -> None:
        cutoff = self._clock() - self._idle_ttl_s
        idle = [
            sid
            for sid, record in self._sessions.items()
            if record.last_used < cutoff and not record.lock.locked()
        ]
        for sid in idle:
            del self._sessions[sid]
        if idle:
            logger.info("Dropped %d idle sales session(s)", len(idle))


def _idle_ttl_from_env() -> float:
    raw = os.getenv("SAVDO_SESSION_IDLE_TTL_S", str(DEFAULT_IDLE_TTL_S)).strip()
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid SAVDO_SESSION_IDLE_TTL_S=%r; using %ss", raw, DEFAULT_IDLE_TTL_S)
        return DEFAULT_IDLE_TTL_S


store = SessionStore(idle_ttl_s=_idle_ttl_from_env())
