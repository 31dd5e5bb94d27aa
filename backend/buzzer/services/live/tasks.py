"""Long-running loops: the hourly phase scheduler and the session heartbeat."""
from .scheduler import FREEZE, PhaseScheduler


def run_phase_scheduler(app, scheduler: PhaseScheduler, sleep, tick_sec: float = 1.0) -> None:
    with app.app_context():
        phase = scheduler.start()
        _audit(app, 'init_' + phase, scheduler.engine.snapshot())
    while True:
        delay = min(float(tick_sec), scheduler.seconds_until_next())
        sleep(max(delay, 0.05))
        with app.app_context():
            try:
                fired = scheduler.tick()
            except Exception:
                app.logger.exception("[phase-error] scheduler tick failed")
                continue
            for transition in fired:
                action = 'freeze' if transition == FREEZE else 'reset_live'
                _audit(app, action, scheduler.engine.snapshot())


def run_heartbeat(app, engine, sleep, interval_sec: float = 30.0) -> None:
    while True:
        sleep(float(interval_sec))
        try:
            evicted = engine.heartbeat()
        except Exception:
            app.logger.exception("[heartbeat-error] sweep failed")
            continue
        if evicted:
            app.logger.info(f"[heartbeat] evicted={len(evicted)} sessions={engine.session_count()}")


def start_background_tasks(app, socketio, engine) -> PhaseScheduler:
    scheduler = PhaseScheduler(engine, freeze_window_min=app.config.get('FREEZE_WINDOW_MIN', 5))
    socketio.start_background_task(
        run_phase_scheduler, app, scheduler, socketio.sleep, app.config.get('SCHEDULER_TICK_SEC', 1),
    )
    socketio.start_background_task(
        run_heartbeat, app, engine, socketio.sleep, app.config.get('HEARTBEAT_INTERVAL_SEC', 30),
    )
    app.logger.info("[tasks] phase scheduler and heartbeat started")
    return scheduler


def _audit(app, action, state) -> None:
    from buzzer.models import record_event
    try:
        record_event('scheduler', action, state)
    except Exception:
        app.logger.exception(f"[audit-error] action={action}")
