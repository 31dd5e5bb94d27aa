import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Session:
    id: str
    display_name: str
    alive: bool = True


class SessionRegistry:
    """Connected clients keyed by transport sid.

    Names and liveness live here rather than on the socket. ``sweep`` is the
    heartbeat step: sessions that did not answer the previous ping are
    returned for eviction, the rest are marked pending and must answer the
    ping sent now.
    """

    def __init__(self, default_name: str = 'Anonymous', max_name_len: int = 15):
        self.default_name = default_name
        self.max_name_len = int(max_name_len)
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def register(self, sid: str) -> Session:
        session = Session(id=sid, display_name=self.default_name)
        with self._lock:
            self._sessions[sid] = session
        return session

    def unregister(self, sid: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.pop(sid, None)

    def apply_if_registered(self, sid: str, fn: Callable[[Session], Any]):
        """Run ``fn(session)`` while holding the registry lock.

        Returns None without calling ``fn`` when ``sid`` is gone, so an
        unregister can never land between the membership check and ``fn``.
        """
        with self._lock:
            session = self._sessions.get(sid)
            if session is None:
                return None
            return fn(session)

    def display_name(self, sid: str) -> Optional[str]:
        with self._lock:
            session = self._sessions.get(sid)
            return session.display_name if session else None

    def set_display_name(self, sid: str, name: str) -> Optional[str]:
        cleaned = (name or '').strip()[:self.max_name_len].strip()
        if not cleaned:
            cleaned = self.default_name
        with self._lock:
            session = self._sessions.get(sid)
            if session is None:
                return None
            session.display_name = cleaned
            return cleaned

    def mark_alive(self, sid: str) -> bool:
        with self._lock:
            session = self._sessions.get(sid)
            if session is None:
                return False
            session.alive = True
            return True

    def sweep(self):
        """Return ``(stale_sids, pinged_sids)`` for one heartbeat round."""
        stale: List[str] = []
        pinged: List[str] = []
        with self._lock:
            for sid, session in self._sessions.items():
                if not session.alive:
                    stale.append(sid)
                else:
                    session.alive = False
                    pinged.append(sid)
        return stale, pinged

    def sids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, sid) -> bool:
        with self._lock:
            return sid in self._sessions
