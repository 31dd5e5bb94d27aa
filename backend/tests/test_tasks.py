from datetime import datetime, timedelta

import pytest

from buzzer.models import AdminLog
from buzzer.services.live.scheduler import PhaseScheduler
from buzzer.services.live.tasks import run_heartbeat, run_phase_scheduler


class _Stop(Exception):
    pass


class WallClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now


def test_scheduler_loop_fires_and_audits(flask_app):
    engine = flask_app.extensions['buzzer']
    wall = WallClock(datetime(2026, 10, 19, 9, 54, 30))
    scheduler = PhaseScheduler(engine, freeze_window_min=5, clock=wall)
    steps = iter([timedelta(seconds=30), timedelta(minutes=5, seconds=30)])
    delays = []

    def sleep(seconds):
        delays.append(seconds)
        try:
            wall.now += next(steps)
        except StopIteration:
            raise _Stop()

    with pytest.raises(_Stop):
        run_phase_scheduler(flask_app, scheduler, sleep, tick_sec=60)

    assert delays[0] == 30
    assert engine.store.is_live is True
    actions = [e.action for e in AdminLog.query.order_by(AdminLog.id).all()]
    assert actions == ['init_live', 'freeze', 'reset_live']


def test_heartbeat_loop_evicts(flask_app, monkeypatch):
    engine = flask_app.extensions['buzzer']
    evictions = []
    monkeypatch.setattr(engine, 'heartbeat', lambda: evictions.append(1) or ['x'])
    calls = []

    def sleep(seconds):
        calls.append(seconds)
        if len(calls) > 2:
            raise _Stop()

    with pytest.raises(_Stop):
        run_heartbeat(flask_app, engine, sleep, interval_sec=30)
    assert calls == [30, 30, 30]
    assert len(evictions) == 2
