import logging
import threading
from typing import Callable, Iterable, Optional

from .state import SharedState

logger = logging.getLogger(__name__)

STATE_UPDATE_EVENT = 'stateUpdate'


class SocketIOTransport:
    """Push events to, and close, individual Socket.IO sessions."""

    def __init__(self, socketio, namespace: str = '/ws'):
        self.socketio = socketio
        self.namespace = namespace

    def send(self, sid: str, event: str, data) -> None:
        self.socketio.emit(event, data, to=sid, namespace=self.namespace)

    def close(self, sid: str) -> None:
        self.socketio.server.disconnect(sid, namespace=self.namespace)


class BroadcastDispatcher:
    """Fan a state snapshot out to every registered session.

    Publishes are serialized and a snapshot older than the last one sent is
    dropped, so one recipient never sees updates out of order. A failed send
    is reported through ``on_failure`` and never stops the fan-out.
    """

    def __init__(self, transport, recipients: Callable[[], Iterable[str]],
                 on_failure: Optional[Callable[[str], None]] = None):
        self.transport = transport
        self._recipients = recipients
        self._on_failure = on_failure
        self._lock = threading.Lock()
        self._last_version = -1

    def send_to(self, sid: str, state: SharedState) -> bool:
        """Send ``state`` to one already-registered session.

        ``state`` must have been read after ``sid`` was registered. If a newer
        version has been published since, that publish already reached ``sid``
        and the older snapshot is dropped.
        """
        with self._lock:
            if state.version < self._last_version:
                logger.debug(f"[send-skip] sid={sid} stale version={state.version} last={self._last_version}")
                return False
            try:
                self.transport.send(sid, STATE_UPDATE_EVENT, state.to_dict())
                return True
            except Exception as exc:
                logger.warning(f"[send-failed] sid={sid} error={exc!r}")
        self._report(sid)
        return False

    def publish(self, state: SharedState) -> int:
        """Deliver ``state`` to all sessions; return the number reached."""
        failed = []
        delivered = 0
        with self._lock:
            if state.version < self._last_version:
                logger.debug(f"[publish-skip] stale version={state.version} last={self._last_version}")
                return 0
            self._last_version = state.version
            payload = state.to_dict()
            for sid in list(self._recipients()):
                try:
                    self.transport.send(sid, STATE_UPDATE_EVENT, payload)
                    delivered += 1
                except Exception as exc:
                    logger.warning(f"[send-failed] sid={sid} error={exc!r}")
                    failed.append(sid)
        for sid in failed:
            self._report(sid)
        logger.debug(f"[publish] version={state.version} delivered={delivered} failed={len(failed)}")
        return delivered

    def _report(self, sid: str) -> None:
        if self._on_failure is None:
            return
        try:
            self._on_failure(sid)
        except Exception:
            logger.exception(f"[evict-error] sid={sid}")
