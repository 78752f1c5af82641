"""Per-browser-session storefront state.

Each session id maps to its own StoreState. State changes for a session run
under that session's lock; slow gateway calls happen outside it, so a shopper
can keep browsing while copy is being generated.

Sessions that sit idle longer than the TTL are evicted, and the registry never
holds more than max_sessions: the least recently used one goes first. The
on_evict callback runs for every dropped id so per-session data kept elsewhere
(the hero image cache) can be released too.
"""

import logging
import threading
import time
import uuid
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional

from .catalog import Catalog
from .config import MAX_SESSIONS, SESSION_TTL_SECONDS
from .state import StoreState

__all__ = ["SessionRegistry", "new_session_id"]

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return uuid.uuid4().hex


@dataclass
class _SessionEntry:
    state: StoreState
    lock: threading.Lock = field(default_factory=threading.Lock)
    last_seen: float = 0.0


class SessionRegistry:
    """In-memory registry of session states, owned by the Flask app.

    Args:
        catalog: Catalog every new session browses.
        ttl_seconds: Idle time after which a session is evicted.
        max_sessions: Upper bound on sessions held at once.
        on_evict: Called with each evicted or discarded session id.
        clock: Monotonic time source (tests inject a fake one).
    """

    def __init__(
        self,
        catalog: Catalog,
        ttl_seconds: float = SESSION_TTL_SECONDS,
        max_sessions: int = MAX_SESSIONS,
        on_evict: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.catalog = catalog
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self.on_evict = on_evict
        self._clock = clock
        # Ordered by last access, oldest first
        self._sessions: "OrderedDict[str, _SessionEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def _expired_ids(self, now: float) -> List[str]:
        evicted = []
        while self._sessions:
            session_id, entry = next(iter(self._sessions.items()))
            if now - entry.last_seen <= self.ttl_seconds:
                break
            del self._sessions[session_id]
            evicted.append(session_id)
        return evicted

    def _entry(self, session_id: str) -> _SessionEntry:
        now = self._clock()
        with self._lock:
            evicted = self._expired_ids(now)
            entry = self._sessions.pop(session_id, None)
            if entry is None:
                entry = _SessionEntry(StoreState(self.catalog))
            entry.last_seen = now
            self._sessions[session_id] = entry
            while len(self._sessions) > self.max_sessions:
                oldest, _ = self._sessions.popitem(last=False)
                evicted.append(oldest)

        self._notify(evicted)
        return entry

    def _notify(self, session_ids: List[str]) -> None:
        if not session_ids:
            return
        logger.debug("Evicted %d session(s)", len(session_ids))
        if self.on_evict is not None:
            for session_id in session_ids:
                self.on_evict(session_id)

    @contextmanager
    def session(self, session_id: str) -> Iterator[StoreState]:
        """Hold a session's lock while its state is read or changed."""
        entry = self._entry(session_id)
        with entry.lock:
            yield entry.state

    def touch(self, session_id: str) -> None:
        """Mark a session as active without locking its state."""
        self._entry(session_id)

    def discard(self, session_id: str) -> None:
        with self._lock:
            removed = self._sessions.pop(session_id, None) is not None
        if removed:
            self._notify([session_id])

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
