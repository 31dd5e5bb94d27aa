import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

LIVE = 'live'
FROZEN = 'frozen'

RESET = 'reset'
FREEZE = 'freeze'


def phase_at(now: datetime, freeze_window_min: int) -> str:
    """Phase implied by the wall clock alone."""
    if freeze_window_min > 0 and now.minute >= 60 - freeze_window_min:
        return FROZEN
    return LIVE


def local_now() -> datetime:
    """Aware local time; the fall-back repeated hour compares unequal."""
    return datetime.now().astimezone()


def hour_of(now: datetime) -> datetime:
    return now.replace(minute=0, second=0, microsecond=0)


class PhaseScheduler:
    """Hourly live/scoreboard cycle driven by wall-clock time.

    - on each new hour: reset counters and go live
    - once per hour, inside the trailing freeze window: freeze

    The freeze fires at most once per hour, so an admin who reopens the board
    during the window is not overridden until the next reset. ``start``
    derives the phase from the current time, so a restart inside the window
    comes back frozen and one outside it comes back live.
    """

    def __init__(self, engine, freeze_window_min: int = 5,
                 clock: Callable[[], datetime] = local_now):
        if not 0 <= int(freeze_window_min) < 60:
            raise ValueError('freeze_window_min must be within 0..59')
        self.engine = engine
        self.freeze_window_min = int(freeze_window_min)
        self._clock = clock
        self._hour: Optional[datetime] = None
        self._freeze_fired = False

    def start(self, now: Optional[datetime] = None) -> str:
        now = now or self._clock()
        self._hour = hour_of(now)
        phase = phase_at(now, self.freeze_window_min)
        self._freeze_fired = phase == FROZEN
        live = phase == LIVE
        if self.engine.store.is_live != live:
            self.engine.set_live_mode(live, source='scheduler')
        logger.info(f"[phase-init] now={now.isoformat(timespec='seconds')} phase={phase}")
        return phase

    def tick(self, now: Optional[datetime] = None) -> List[str]:
        """Fire whatever transitions are due at ``now``; return their names."""
        now = now or self._clock()
        if self._hour is None:
            self.start(now)
            return []
        fired: List[str] = []
        hour = hour_of(now)
        if hour != self._hour:
            self._hour = hour
            self._freeze_fired = False
            self.engine.reset_and_go_live(source='scheduler')
            logger.info(f"[phase-reset] hour={hour.isoformat(timespec='minutes')}")
            fired.append(RESET)
        if not self._freeze_fired and phase_at(now, self.freeze_window_min) == FROZEN:
            self._freeze_fired = True
            self.engine.set_live_mode(False, source='scheduler')
            logger.info(f"[phase-freeze] hour={hour.isoformat(timespec='minutes')}")
            fired.append(FREEZE)
        return fired

    def seconds_until_next(self, now: Optional[datetime] = None) -> float:
        now = now or self._clock()
        next_hour = hour_of(now) + timedelta(hours=1)
        candidates = [next_hour]
        if self.freeze_window_min > 0:
            freeze_at = hour_of(now) + timedelta(minutes=60 - self.freeze_window_min)
            if freeze_at > now:
                candidates.append(freeze_at)
        return max(0.0, (min(candidates) - now).total_seconds())
