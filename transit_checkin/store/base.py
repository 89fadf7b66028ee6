# transit_checkin/store/base.py
"""
Store client contract shared by the in-memory and Firebase backends.

The store is a hierarchical JSON tree addressed by slash-separated paths
(e.g. "passengers/p123", "codes/AR01"). Semantics follow the Firebase
Realtime Database: writing None deletes, empty maps disappear, and
{".sv": "timestamp"} is replaced by the server clock on write.
"""

import copy
import random
import time
from typing import Any, Callable, Optional, Protocol

from transit_checkin.utils.logger import get_logger

logger = get_logger(__name__)

SERVER_TIMESTAMP = {".sv": "timestamp"}
INVALID_KEY_CHARS = set(".$#[]/")

PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"

Callback = Callable[[Any], None]


class StoreClient(Protocol):
    async def get(self, path: str) -> Any:
        raise NotImplementedError

    async def set(self, path: str, value: Any) -> None:
        raise NotImplementedError

    async def update(self, path: str, values: dict) -> None:
        """Multi-path write. Keys are paths relative to `path`; applied atomically."""
        raise NotImplementedError

    async def remove(self, path: str) -> None:
        raise NotImplementedError

    async def compare_and_set(self, path: str, expected: Any, value: Any) -> bool:
        """Write `value` only while the node still holds `expected`; False otherwise."""
        raise NotImplementedError

    def subscribe(self, path: str, callback: Callback) -> "Subscription":
        raise NotImplementedError

    def generate_id(self) -> str:
        raise NotImplementedError

    def server_timestamp(self) -> dict:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError


class Subscription:
    """Handle for a live subscription. close() is idempotent."""

    def __init__(self, path: str, on_close: Optional[Callable[["Subscription"], None]] = None):
        self.path = path
        self.active = True
        self._on_close = on_close

    def close(self):
        if not self.active:
            return
        self.active = False
        if self._on_close:
            self._on_close(self)

    def __repr__(self):
        state = "active" if self.active else "closed"
        return f"<Subscription {self.path or '/'} {state}>"


def is_valid_key(key: str) -> bool:
    if not key or len(key) > 768:
        return False
    return not any(ch in INVALID_KEY_CHARS or ord(ch) < 32 or ord(ch) == 127 for ch in key)


def split_path(path: str) -> list:
    """Split "a/b/c" into segments. Raises ValueError on an unusable segment."""
    segments = [s for s in (path or "").strip("/").split("/") if s != ""]
    for segment in segments:
        if not is_valid_key(segment):
            raise ValueError(f"Invalid store key {segment!r} in path {path!r}")
    return segments


def join_path(*parts: str) -> str:
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))


def normalize_value(value: Any) -> Any:
    """Drop None leaves and empty maps the way the store does."""
    if isinstance(value, dict):
        cleaned = {}
        for key, child in value.items():
            child = normalize_value(child)
            if child is not None:
                cleaned[str(key)] = child
        return cleaned or None
    return value


def get_value(root: Any, segments: list) -> Any:
    node = root
    for segment in segments:
        if not isinstance(node, dict) or segment not in node:
            return None
        node = node[segment]
    return copy.deepcopy(node)


def put_value(root: Any, segments: list, value: Any) -> Any:
    """Return the tree with `value` stored at `segments` (None deletes)."""
    value = normalize_value(value)
    if not segments:
        return value

    head, rest = segments[0], segments[1:]
    node = dict(root) if isinstance(root, dict) else {}
    child = put_value(node.get(head), rest, value)
    if child is None:
        node.pop(head, None)
    else:
        node[head] = child
    return node or None


def resolve_server_values(value: Any, now_ms: int) -> Any:
    if value == SERVER_TIMESTAMP:
        return now_ms
    if isinstance(value, dict):
        return {k: resolve_server_values(v, now_ms) for k, v in value.items()}
    return value


class PushIdGenerator:
    """
    Chronologically ordered 20-char keys: 8 chars of millisecond timestamp
    followed by 12 random chars, incremented when two ids share a millisecond.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._last_ms = -1
        self._last_random = [0] * 12

    def __call__(self) -> str:
        now = self._clock()
        duplicate = now == self._last_ms
        self._last_ms = now

        ts_chars = []
        for _ in range(8):
            ts_chars.append(PUSH_CHARS[now % 64])
            now //= 64
        ts_chars.reverse()

        if not duplicate:
            self._last_random = [random.randrange(64) for _ in range(12)]
        else:
            i = 11
            while i >= 0 and self._last_random[i] == 63:
                self._last_random[i] = 0
                i -= 1
            if i >= 0:
                self._last_random[i] += 1

        return "".join(ts_chars) + "".join(PUSH_CHARS[n] for n in self._last_random)


def deliver(callback: Callback, value: Any, path: str):
    """Invoke a subscriber. A failing view must not break the writer or the stream."""
    try:
        callback(copy.deepcopy(value))
    except Exception as e:
        logger.error(f"Subscriber on '{path or '/'}' failed: {e}", exc_info=True)
