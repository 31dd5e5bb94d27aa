import os
import sys
import pytest

# Ensure the backend root (containing the `buzzer` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from buzzer import create_app, db, socketio
from buzzer.services.live.engine import BuzzerEngine
from buzzer.services.live.phrase_locks import PhraseLockManager
from buzzer.services.live.rate_limit import RateLimiter
from buzzer.services.live.sessions import SessionRegistry
from buzzer.services.live.state import SharedStateStore
from werkzeug.security import generate_password_hash

PHRASES = ('on va dire', 'notamment')
ADMIN_AUTH = ('admin', 'test-password')


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PHRASE_KEYS = PHRASES
    RATE_LIMIT_WINDOW_SEC = 10
    RATE_LIMIT_MAX_ATTEMPTS = 5
    PHRASE_LOCK_SEC = 2.5
    HEARTBEAT_INTERVAL_SEC = 30
    FREEZE_WINDOW_MIN = 5
    DISPLAY_NAME_MAX_LEN = 15
    DEFAULT_DISPLAY_NAME = 'Anonymous'
    SOCKETIO_NAMESPACE = '/ws'
    CORS_ORIGINS = ('http://localhost:5173',)
    ADMIN_USERNAME = ADMIN_AUTH[0]
    ADMIN_PASSWORD_HASH = generate_password_hash(ADMIN_AUTH[1])
    BACKGROUND_TASKS_ENABLED = False


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeTimers:
    """Collects deferred calls; tests fire them explicitly."""

    def __init__(self):
        self.pending = []

    def call_later(self, delay, fn, *args):
        from buzzer.services.live.timers import DeferredCall
        handle = DeferredCall(delay, fn, args)
        self.pending.append(handle)
        return handle

    def fire_all(self):
        pending, self.pending = self.pending, []
        for handle in pending:
            handle.fire()


class FakeTransport:
    def __init__(self):
        self.sent = []
        self.closed = []
        self.broken = set()

    def send(self, sid, event, data):
        if sid in self.broken:
            raise ConnectionError(f'{sid} is gone')
        self.sent.append((sid, event, data))

    def close(self, sid):
        self.closed.append(sid)

    def events_for(self, sid, event='stateUpdate'):
        return [data for (s, e, data) in self.sent if s == sid and e == event]


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def timers():
    return FakeTimers()


@pytest.fixture()
def transport():
    return FakeTransport()


@pytest.fixture()
def engine(clock, timers, transport):
    return BuzzerEngine(
        store=SharedStateStore(PHRASES),
        registry=SessionRegistry(default_name='Anonymous', max_name_len=15),
        limiter=RateLimiter(max_attempts=5, window_sec=10, clock=clock),
        locks=PhraseLockManager(PHRASES, 2.5, timers.call_later),
        transport=transport,
    )


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import buzzer.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
