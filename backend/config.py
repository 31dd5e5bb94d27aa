import os


def _split_env(name, default):
    raw = os.environ.get(name)
    if raw is None:
        return tuple(default)
    return tuple(part.strip() for part in raw.split(',') if part.strip())


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///buzzer.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Closed set of counters; never grows at runtime
    PHRASE_KEYS = _split_env('PHRASE_KEYS', ('on va dire', 'notamment'))
    # Sliding-window limiter on increment attempts, per session across all keys
    RATE_LIMIT_WINDOW_SEC = float(os.environ.get('RATE_LIMIT_WINDOW_SEC', '10'))
    RATE_LIMIT_MAX_ATTEMPTS = int(os.environ.get('RATE_LIMIT_MAX_ATTEMPTS', '5'))
    # Per-phrase debounce hold (seconds)
    PHRASE_LOCK_SEC = float(os.environ.get('PHRASE_LOCK_SEC', '2.5'))
    HEARTBEAT_INTERVAL_SEC = float(os.environ.get('HEARTBEAT_INTERVAL_SEC', '30'))
    # Scoreboard phase covers the last N minutes of every hour; reset on the hour
    FREEZE_WINDOW_MIN = int(os.environ.get('FREEZE_WINDOW_MIN', '5'))
    SCHEDULER_TICK_SEC = float(os.environ.get('SCHEDULER_TICK_SEC', '1'))
    DISPLAY_NAME_MAX_LEN = int(os.environ.get('DISPLAY_NAME_MAX_LEN', '15'))
    DEFAULT_DISPLAY_NAME = os.environ.get('DEFAULT_DISPLAY_NAME', 'Anonymous')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    CORS_ORIGINS = _split_env('CORS_ORIGINS', (
        'http://localhost:5173',
        'http://127.0.0.1:5173',
    ))
    ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME', 'admin')
    # Either a werkzeug hash or a plain password that is hashed at startup
    ADMIN_PASSWORD_HASH = os.environ.get('ADMIN_PASSWORD_HASH')
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'change-me')
    # Scheduler and heartbeat loops (disabled under TESTING regardless)
    BACKGROUND_TASKS_ENABLED = os.environ.get('BACKGROUND_TASKS_ENABLED', '1') != '0'
