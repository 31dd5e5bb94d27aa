from flask import request
from buzzer import socketio, get_engine
from buzzer.services.live.protocol import INCREMENT, LEGACY_ALIASES, PONG, SET_NAME


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    get_engine().connect(_get_sid())


def handle_disconnect(reason=None):
    get_engine().disconnect(_get_sid())


def handle_message(data):
    """Generic ``{type, payload}`` envelope sent with ``socket.send``."""
    get_engine().handle_message(_get_sid(), data)


def _typed_handler(msg_type: str):
    def _handler(data=None):
        get_engine().handle_message(_get_sid(), {'type': msg_type, 'payload': data})
    _handler.__name__ = f"handle_{msg_type}"
    return _handler


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on ``namespace``.

    Each named event is folded into the same envelope the generic
    ``message`` event carries, so both paths share one parser.
    """
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('message', handle_message, namespace=namespace)
    for msg_type in (SET_NAME, INCREMENT, PONG, *LEGACY_ALIASES):
        socketio.on_event(msg_type, _typed_handler(msg_type), namespace=namespace)
