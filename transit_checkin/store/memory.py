# transit_checkin/store/memory.py
"""
In-process store with the same semantics as the hosted database.
Backs the test-suite and STORE_BACKEND=memory (local demos, no network).
"""

import time
from typing import Any, Callable, Optional

from transit_checkin.store.base import (
    PushIdGenerator,
    SERVER_TIMESTAMP,
    Subscription,
    deliver,
    get_value,
    join_path,
    put_value,
    resolve_server_values,
    split_path,
)
from transit_checkin.utils.logger import get_logger

logger = get_logger(__name__)

_MISSING = object()


class _Listener:
    def __init__(self, segments: list, callback, subscription: Subscription):
        self.segments = segments
        self.callback = callback
        self.subscription = subscription
        self.last: Any = _MISSING


class MemoryStore:
    def __init__(self, data: Optional[dict] = None, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._root = put_value(None, [], data or {})
        self._listeners: list = []
        self._ids = PushIdGenerator(self._clock)

    # ── Reads ─────────────────────────────────────────────────────────────
    async def get(self, path: str) -> Any:
        return get_value(self._root, split_path(path))

    def snapshot(self) -> Any:
        """Whole tree, for assertions and debugging."""
        return get_value(self._root, [])

    # ── Writes ────────────────────────────────────────────────────────────
    async def set(self, path: str, value: Any) -> None:
        self._apply([(split_path(path), value)])

    async def update(self, path: str, values: dict) -> None:
        base = split_path(path)
        # Validate every key before touching the tree so a bad key writes nothing
        changes = [(base + split_path(key), value) for key, value in values.items()]
        self._apply(changes)

    async def remove(self, path: str) -> None:
        self._apply([(split_path(path), None)])

    async def compare_and_set(self, path: str, expected: Any, value: Any) -> bool:
        segments = split_path(path)
        if get_value(self._root, segments) != expected:
            return False
        self._apply([(segments, value)])
        return True

    def _apply(self, changes: list):
        now = self._clock()
        root = self._root
        for segments, value in changes:
            root = put_value(root, segments, resolve_server_values(value, now))
        self._root = root
        logger.debug(f"Applied {len(changes)} change(s): {[join_path(*s) for s, _ in changes]}")
        self._notify()

    # ── Subscriptions ─────────────────────────────────────────────────────
    def subscribe(self, path: str, callback) -> Subscription:
        segments = split_path(path)
        subscription = Subscription(join_path(*segments), on_close=self._unsubscribe)
        listener = _Listener(segments, callback, subscription)
        self._listeners.append(listener)
        self._fire(listener)
        return subscription

    def _unsubscribe(self, subscription: Subscription):
        self._listeners = [l for l in self._listeners if l.subscription is not subscription]

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _notify(self):
        for listener in list(self._listeners):
            if listener.subscription.active:
                self._fire(listener)

    def _fire(self, listener: _Listener):
        value = get_value(self._root, listener.segments)
        if listener.last is not _MISSING and listener.last == value:
            return
        listener.last = value
        deliver(listener.callback, value, listener.subscription.path)

    # ── Helpers ───────────────────────────────────────────────────────────
    def generate_id(self) -> str:
        return self._ids()

    def server_timestamp(self) -> dict:
        return dict(SERVER_TIMESTAMP)

    async def close(self) -> None:
        for listener in list(self._listeners):
            listener.subscription.close()
