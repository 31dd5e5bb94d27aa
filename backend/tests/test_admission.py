from buzzer.services.live.phrase_locks import PhraseLockManager
from buzzer.services.live.rate_limit import RateLimiter


def test_sixth_attempt_in_window_is_rejected(clock):
    limiter = RateLimiter(max_attempts=5, window_sec=10, clock=clock)
    results = []
    for _ in range(6):
        results.append(limiter.allow('a'))
        clock.advance(1)
    assert results == [True] * 5 + [False]


def test_rejected_attempts_are_not_recorded(clock):
    limiter = RateLimiter(max_attempts=5, window_sec=10, clock=clock)
    for _ in range(5):
        assert limiter.allow('a')
    for _ in range(10):
        assert not limiter.allow('a')
    assert limiter.tracked('a') == 5


def test_window_slides_with_elapsed_time(clock):
    limiter = RateLimiter(max_attempts=5, window_sec=10, clock=clock)
    for _ in range(5):
        assert limiter.allow('a')
        clock.advance(2)
    # now = start + 10: the first entry has just aged out
    assert limiter.allow('a')
    assert not limiter.allow('a')
    clock.advance(1)
    assert not limiter.allow('a')
    clock.advance(1)
    assert limiter.allow('a')


def test_sessions_have_independent_windows(clock):
    limiter = RateLimiter(max_attempts=5, window_sec=10, clock=clock)
    for _ in range(5):
        limiter.allow('a')
    assert not limiter.allow('a')
    assert limiter.allow('b')


def test_forget_drops_window(clock):
    limiter = RateLimiter(max_attempts=1, window_sec=10, clock=clock)
    assert limiter.allow('a')
    limiter.forget('a')
    assert limiter.tracked('a') == 0
    assert limiter.allow('a')


def test_lock_blocks_until_released(timers):
    locks = PhraseLockManager(['on va dire', 'notamment'], 2.5, timers.call_later)
    assert locks.try_acquire('on va dire')
    assert not locks.try_acquire('on va dire')
    # Other keys are independent
    assert locks.try_acquire('notamment')
    assert [h.delay for h in timers.pending] == [2.5, 2.5]
    timers.fire_all()
    assert not locks.is_locked('on va dire')
    assert locks.try_acquire('on va dire')


def test_failed_acquire_schedules_nothing(timers):
    locks = PhraseLockManager(['k'], 2.5, timers.call_later)
    locks.try_acquire('k')
    locks.try_acquire('k')
    locks.try_acquire('k')
    assert len(timers.pending) == 1


def test_unknown_key_cannot_be_locked(timers):
    locks = PhraseLockManager(['k'], 2.5, timers.call_later)
    assert not locks.try_acquire('other')
    assert timers.pending == []


def test_manual_release_cancels_pending_timer(timers):
    locks = PhraseLockManager(['k'], 2.5, timers.call_later)
    locks.try_acquire('k')
    first = timers.pending[0]
    locks.release('k')
    assert first.cancelled
    assert locks.try_acquire('k')
    # The stale timer must not unlock the new hold
    first.fire()
    assert locks.is_locked('k')


def test_synchronous_release_leaves_key_unlocked():
    def immediate(delay, fn, *args):
        fn(*args)
        return None

    locks = PhraseLockManager(['k'], 2.5, immediate)
    assert locks.try_acquire('k')
    assert not locks.is_locked('k')


def test_schedule_failure_leaves_key_unlocked():
    def broken(delay, fn, *args):
        raise RuntimeError('no background task')

    locks = PhraseLockManager(['k'], 2.5, broken)
    assert not locks.try_acquire('k')
    assert not locks.is_locked('k')
