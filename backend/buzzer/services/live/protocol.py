"""Wire format for client messages.

Clients send ``{"type": ..., "payload": ...}`` envelopes, either as the
payload of a generic ``message`` event or as a named event whose name is the
type. Older clients used ``setPseudo``/``incrementCounter`` and a ``phrase``
field; both are still understood.
"""
import json
from typing import Any, NamedTuple

SET_NAME = 'setName'
INCREMENT = 'increment'
PONG = 'pong'
PING = 'ping'

LEGACY_ALIASES = {
    'setPseudo': SET_NAME,
    'incrementCounter': INCREMENT,
}


class ProtocolError(ValueError):
    """Malformed client message; dropped without closing the connection."""


class UnknownPhraseError(ProtocolError):
    pass


class Message(NamedTuple):
    type: str
    payload: Any


def canonical_type(msg_type: str) -> str:
    return LEGACY_ALIASES.get(msg_type, msg_type)


def parse_envelope(raw) -> Message:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode('utf-8')
        except UnicodeDecodeError as exc:
            raise ProtocolError(f'undecodable message: {exc}') from exc
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise ProtocolError(f'invalid JSON: {exc}') from exc
    if not isinstance(raw, dict):
        raise ProtocolError('message must be an object')
    msg_type = raw.get('type')
    if not isinstance(msg_type, str) or not msg_type:
        raise ProtocolError('message type is required')
    return Message(canonical_type(msg_type), raw.get('payload'))


def display_name_from(payload) -> str:
    if isinstance(payload, dict):
        payload = payload.get('name', payload.get('pseudo'))
    if not isinstance(payload, str):
        raise ProtocolError('setName payload must be a string')
    return payload


def phrase_key_from(payload, phrase_keys) -> str:
    if not isinstance(payload, dict):
        raise ProtocolError('increment payload must be an object')
    key = payload.get('phraseKey', payload.get('phrase'))
    if not isinstance(key, str):
        raise ProtocolError('phraseKey is required')
    if key not in phrase_keys:
        raise UnknownPhraseError(f'unknown phrase key: {key!r}')
    return key
