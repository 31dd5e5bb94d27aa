import logging
from typing import Callable, Optional

from .broadcast import BroadcastDispatcher
from .phrase_locks import PhraseLockManager
from .protocol import (
    INCREMENT, PONG, SET_NAME, PING, ProtocolError,
    display_name_from, parse_envelope, phrase_key_from,
)
from .rate_limit import RateLimiter
from .sessions import Session, SessionRegistry
from .state import SharedState, SharedStateStore

logger = logging.getLogger(__name__)


class BuzzerEngine:
    """Owns the live counters and every path that mutates them.

    Client messages, the phase scheduler and the admin routes all end in one
    of the mutation methods here, each of which publishes the resulting
    snapshot once the store lock is released.
    """

    def __init__(self, store: SharedStateStore, registry: SessionRegistry,
                 limiter: RateLimiter, locks: PhraseLockManager, transport):
        self.store = store
        self.registry = registry
        self.limiter = limiter
        self.locks = locks
        self.transport = transport
        self.dispatcher = BroadcastDispatcher(
            transport, registry.sids, on_failure=self.evict,
        )

    @classmethod
    def from_config(cls, config, transport, call_later: Callable,
                    clock: Optional[Callable[[], float]] = None):
        keys = tuple(config['PHRASE_KEYS'])
        limiter_kwargs = {}
        if clock is not None:
            limiter_kwargs['clock'] = clock
        return cls(
            store=SharedStateStore(keys),
            registry=SessionRegistry(
                default_name=config.get('DEFAULT_DISPLAY_NAME', 'Anonymous'),
                max_name_len=config.get('DISPLAY_NAME_MAX_LEN', 15),
            ),
            limiter=RateLimiter(
                max_attempts=config.get('RATE_LIMIT_MAX_ATTEMPTS', 5),
                window_sec=config.get('RATE_LIMIT_WINDOW_SEC', 10),
                **limiter_kwargs,
            ),
            locks=PhraseLockManager(keys, config.get('PHRASE_LOCK_SEC', 2.5), call_later),
            transport=transport,
        )

    # ---- sessions ----

    def connect(self, sid: str) -> Session:
        session = self.registry.register(sid)
        self.dispatcher.send_to(sid, self.store.snapshot())
        logger.info(f"[connect] sid={sid} sessions={len(self.registry)}")
        return session

    def disconnect(self, sid: str) -> None:
        removed = self.registry.unregister(sid)
        self.limiter.forget(sid)
        if removed is not None:
            logger.info(f"[disconnect] sid={sid} sessions={len(self.registry)}")

    def evict(self, sid: str) -> None:
        if sid not in self.registry:
            return
        self.disconnect(sid)
        try:
            self.transport.close(sid)
        except Exception as exc:
            logger.warning(f"[evict-close-failed] sid={sid} error={exc!r}")

    def set_name(self, sid: str, name: str) -> Optional[str]:
        stored = self.registry.set_display_name(sid, name)
        if stored is not None:
            logger.info(f"[set-name] sid={sid} name={stored!r}")
        return stored

    def heartbeat(self):
        """Evict sessions that missed the last ping, then ping the rest."""
        stale, pinged = self.registry.sweep()
        for sid in stale:
            logger.info(f"[heartbeat-evict] sid={sid}")
            self.evict(sid)
        for sid in pinged:
            try:
                self.transport.send(sid, PING, {})
            except Exception as exc:
                logger.warning(f"[heartbeat-send-failed] sid={sid} error={exc!r}")
                self.evict(sid)
        return stale

    def acknowledge_heartbeat(self, sid: str) -> bool:
        return self.registry.mark_alive(sid)

    # ---- client messages ----

    def handle_message(self, sid: str, raw) -> bool:
        """Dispatch one envelope; malformed or unknown messages are dropped."""
        try:
            message = parse_envelope(raw)
            if message.type == SET_NAME:
                return self.set_name(sid, display_name_from(message.payload)) is not None
            if message.type == INCREMENT:
                return self.increment(sid, phrase_key_from(message.payload, self.store.phrase_keys))
            if message.type == PONG:
                return self.acknowledge_heartbeat(sid)
        except ProtocolError as exc:
            logger.info(f"[malformed] sid={sid} error={exc}")
            return False
        logger.info(f"[unknown-type] sid={sid} type={message.type!r}")
        return False

    def increment(self, sid: str, phrase_key: str) -> bool:
        """Run an increment through admission control; True when applied."""
        if sid not in self.registry:
            logger.debug(f"[increment-drop] sid={sid} unknown session")
            return False
        if not self.store.is_live:
            logger.debug(f"[increment-reject] sid={sid} phrase={phrase_key} frozen")
            return False
        if not self.limiter.allow(sid):
            logger.debug(f"[increment-reject] sid={sid} phrase={phrase_key} rate-limited")
            return False
        if not self.locks.try_acquire(phrase_key):
            logger.debug(f"[increment-reject] sid={sid} phrase={phrase_key} locked")
            return False
        # Registry lock is held across the apply, so a concurrent disconnect
        # lands either before (dropped here) or after (increment counted)
        state = self.registry.apply_if_registered(
            sid, lambda session: self.store.apply_increment(phrase_key, session.display_name),
        )
        if state is None:
            self.locks.release(phrase_key)
            return False
        name = state.last_scorer[0]
        logger.info(f"[increment] sid={sid} name={name!r} phrase={phrase_key} count={state.counters[phrase_key]}")
        self.dispatcher.publish(state)
        return True

    # ---- scheduler / admin ----

    def snapshot(self) -> SharedState:
        return self.store.snapshot()

    def session_count(self) -> int:
        return len(self.registry)

    def reset(self, source: str = 'admin') -> SharedState:
        state = self.store.apply_reset()
        logger.info(f"[reset] source={source}")
        self.dispatcher.publish(state)
        return state

    def set_live_mode(self, live: bool, source: str = 'admin') -> SharedState:
        state = self.store.set_live_mode(live)
        logger.info(f"[live-mode] source={source} live={state.is_live_mode}")
        self.dispatcher.publish(state)
        return state

    def toggle_live_mode(self, source: str = 'admin') -> SharedState:
        state = self.store.toggle_live_mode()
        logger.info(f"[live-mode] source={source} live={state.is_live_mode} toggled")
        self.dispatcher.publish(state)
        return state

    def reset_and_go_live(self, source: str = 'scheduler') -> SharedState:
        state = self.store.reset_and_go_live()
        logger.info(f"[reset-live] source={source}")
        self.dispatcher.publish(state)
        return state
