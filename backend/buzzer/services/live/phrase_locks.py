import logging
import threading
from typing import Callable, Dict, Iterable

logger = logging.getLogger(__name__)


class PhraseLockManager:
    """Global debounce flag per phrase key.

    ``try_acquire`` trips the flag and schedules its release through
    ``call_later``; while tripped, every attempt on that key fails no matter
    which session sent it. Losers are not queued.
    """

    def __init__(self, phrase_keys: Iterable[str], hold_sec: float, call_later: Callable):
        self.hold_sec = float(hold_sec)
        self._call_later = call_later
        self._locked: Dict[str, bool] = {k: False for k in phrase_keys}
        self._timers: Dict[str, object] = {}
        self._lock = threading.Lock()

    def is_locked(self, key: str) -> bool:
        with self._lock:
            return self._locked.get(key, False)

    def try_acquire(self, key: str) -> bool:
        with self._lock:
            if key not in self._locked or self._locked[key]:
                return False
            self._locked[key] = True
        try:
            handle = self._call_later(self.hold_sec, self.release, key)
        except Exception:
            # No release timer could be scheduled; do not leave the key stuck
            logger.exception(f"[lock-schedule-failed] phrase={key}")
            with self._lock:
                self._locked[key] = False
            return False
        with self._lock:
            # Release may already have run if the scheduler fired synchronously
            if self._locked.get(key):
                self._timers[key] = handle
        return True

    def release(self, key: str) -> None:
        with self._lock:
            if key not in self._locked:
                return
            self._locked[key] = False
            handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()
        logger.debug(f"[lock-release] phrase={key}")
