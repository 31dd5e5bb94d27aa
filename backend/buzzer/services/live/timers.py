"""Deferred calls run as Socket.IO background tasks.

Works under every async mode Flask-SocketIO supports because both the task
and its sleep go through the server object instead of ``threading``.
"""
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class DeferredCall:
    def __init__(self, delay: float, fn: Callable[..., Any], args=()):
        self.delay = delay
        self.fn = fn
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.cancelled:
            return
        try:
            self.fn(*self.args)
        except Exception:
            logger.exception(f"[deferred-error] fn={getattr(self.fn, '__name__', self.fn)}")


def socketio_call_later(socketio):
    """Return a ``call_later(delay, fn, *args)`` bound to ``socketio``."""

    def call_later(delay: float, fn: Callable[..., Any], *args) -> DeferredCall:
        handle = DeferredCall(delay, fn, args)

        def _runner(h: DeferredCall):
            socketio.sleep(h.delay)
            h.fire()

        socketio.start_background_task(_runner, handle)
        return handle

    return call_later
