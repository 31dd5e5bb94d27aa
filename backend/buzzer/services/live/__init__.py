"""Live counter synchronization: state, admission control, fan-out, phases.

Nothing in this package touches Flask request context; the socket handlers,
the admin routes and the background tasks all drive it through
``BuzzerEngine``.
"""
from .engine import BuzzerEngine  # noqa: F401
