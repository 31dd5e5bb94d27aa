import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple


@dataclass(frozen=True)
class SharedState:
    """Immutable snapshot of the counters handed to broadcasts and admin reads."""

    counters: Dict[str, int] = field(default_factory=dict)
    last_scorer: Optional[Tuple[str, str]] = None
    is_live_mode: bool = True
    version: int = 0

    def to_dict(self):
        last = None
        if self.last_scorer:
            last = {'displayName': self.last_scorer[0], 'phraseKey': self.last_scorer[1]}
        return {
            'counters': dict(self.counters),
            'lastScorer': last,
            'isLiveMode': self.is_live_mode,
            'version': self.version,
        }


class SharedStateStore:
    """Single owner of counters, last scorer and the live/frozen flag.

    Every mutation goes through one of the methods below and happens under
    one lock, so a snapshot never sees a half-applied change. The store does
    no I/O; callers publish the returned snapshot after the lock is released.
    """

    def __init__(self, phrase_keys: Iterable[str], live: bool = True):
        keys = tuple(phrase_keys)
        if not keys:
            raise ValueError('at least one phrase key is required')
        self._keys = keys
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = {k: 0 for k in keys}
        self._last_scorer: Optional[Tuple[str, str]] = None
        self._live = bool(live)
        self._version = 0

    @property
    def phrase_keys(self) -> Tuple[str, ...]:
        return self._keys

    @property
    def is_live(self) -> bool:
        with self._lock:
            return self._live

    def _snapshot_locked(self) -> SharedState:
        return SharedState(
            counters=dict(self._counters),
            last_scorer=self._last_scorer,
            is_live_mode=self._live,
            version=self._version,
        )

    def snapshot(self) -> SharedState:
        with self._lock:
            return self._snapshot_locked()

    def apply_increment(self, phrase_key: str, display_name: str) -> Optional[SharedState]:
        """Add one to ``phrase_key`` and record the scorer.

        Returns the new snapshot, or None when frozen or the key is unknown.
        """
        with self._lock:
            if not self._live:
                return None
            if phrase_key not in self._counters:
                return None
            self._counters[phrase_key] += 1
            self._last_scorer = (display_name, phrase_key)
            self._version += 1
            return self._snapshot_locked()

    def apply_reset(self) -> SharedState:
        with self._lock:
            self._counters = {k: 0 for k in self._keys}
            self._last_scorer = None
            self._version += 1
            return self._snapshot_locked()

    def set_live_mode(self, live: bool) -> SharedState:
        with self._lock:
            self._live = bool(live)
            self._version += 1
            return self._snapshot_locked()

    def reset_and_go_live(self) -> SharedState:
        # Hourly boundary: reset and reopen in one step
        with self._lock:
            self._counters = {k: 0 for k in self._keys}
            self._last_scorer = None
            self._live = True
            self._version += 1
            return self._snapshot_locked()

    def toggle_live_mode(self) -> SharedState:
        with self._lock:
            self._live = not self._live
            self._version += 1
            return self._snapshot_locked()
