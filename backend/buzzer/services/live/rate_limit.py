import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional


class RateLimiter:
    """Sliding-window limiter on increment attempts, keyed by session id.

    A single window is shared across every phrase key for a session.
    """

    def __init__(self, max_attempts: int = 5, window_sec: float = 10.0,
                 clock: Callable[[], float] = time.monotonic):
        self.max_attempts = int(max_attempts)
        self.window_sec = float(window_sec)
        self._clock = clock
        self._windows: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def allow(self, session_id: str, now: Optional[float] = None) -> bool:
        if now is None:
            now = self._clock()
        with self._lock:
            dq = self._windows.get(session_id)
            if dq is None:
                dq = deque()
                self._windows[session_id] = dq
            while dq and now - dq[0] >= self.window_sec:
                dq.popleft()
            if len(dq) >= self.max_attempts:
                return False
            dq.append(now)
            return True

    def forget(self, session_id: str) -> None:
        with self._lock:
            self._windows.pop(session_id, None)

    def tracked(self, session_id: str) -> int:
        with self._lock:
            dq = self._windows.get(session_id)
            return len(dq) if dq else 0
