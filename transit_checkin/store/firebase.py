# transit_checkin/store/firebase.py
"""
Firebase Realtime Database client over the REST API.

Point reads/writes:  GET / PUT / PATCH / DELETE  {database_url}/{path}.json
Multi-path update:   PATCH on the parent with {"a/b": 1, "c/d": null}, applied atomically
Conditional write:   GET with X-Firebase-ETag, then PUT with if-match (412 when the node moved)
Live subscriptions:  GET with Accept: text/event-stream; the server pushes
                     `put` / `patch` events that we replay onto a local mirror.
"""

import asyncio
import json
from typing import Any, Optional

import httpx

from transit_checkin.exceptions import StoreUnavailable
from transit_checkin.store.base import (
    PushIdGenerator,
    SERVER_TIMESTAMP,
    Subscription,
    deliver,
    join_path,
    put_value,
    split_path,
)
from transit_checkin.utils.logger import get_logger

logger = get_logger(__name__)

# Reconnect delay in seconds (doubles on each failure, max 60s)
_MIN_BACKOFF = 3
_MAX_BACKOFF = 60


class FirebaseStore:
    def __init__(
        self,
        database_url: str,
        auth_token: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._base = database_url.rstrip("/")
        self._auth = auth_token
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._ids = PushIdGenerator()
        self._streams: dict = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def _url(self, path: str) -> str:
        segments = split_path(path)
        return f"{self._base}/{'/'.join(segments)}.json" if segments else f"{self._base}/.json"

    def _params(self, **extra) -> dict:
        params = dict(extra)
        if self._auth:
            params["auth"] = self._auth
        return params

    async def _request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        headers: Optional[dict] = None,
        allow: tuple = (),
        **params,
    ) -> httpx.Response:
        self._loop = asyncio.get_running_loop()
        url = self._url(path)
        # PUT null is how a conditional delete is sent
        content = json.dumps(body) if body is not None or method == "PUT" else None
        try:
            response = await self._client.request(
                method, url, params=self._params(**params), headers=headers, content=content,
            )
        except httpx.HTTPError as e:
            logger.error(f"Store {method} /{path} failed: {e}")
            raise StoreUnavailable(f"Store unreachable: {e}") from e

        if response.status_code >= 400 and response.status_code not in allow:
            logger.error(f"Store {method} /{path} → HTTP {response.status_code}: {response.text[:200]}")
            raise StoreUnavailable(f"Store rejected {method} /{path} (HTTP {response.status_code})")
        return response

    # ── Reads / writes ────────────────────────────────────────────────────
    async def get(self, path: str) -> Any:
        response = await self._request("GET", path)
        return response.json()

    async def set(self, path: str, value: Any) -> None:
        if value is None:
            await self.remove(path)
            return
        await self._request("PUT", path, value, print="silent")

    async def update(self, path: str, values: dict) -> None:
        if not values:
            return
        for key in values:
            split_path(key)
        await self._request("PATCH", path, values, print="silent")

    async def remove(self, path: str) -> None:
        await self._request("DELETE", path, print="silent")

    async def compare_and_set(self, path: str, expected: Any, value: Any) -> bool:
        """Write `value` only while the node still holds `expected`. False when it does not."""
        current = await self._request("GET", path, headers={"X-Firebase-ETag": "true"})
        if current.json() != expected:
            return False
        etag = current.headers.get("ETag", "")
        response = await self._request("PUT", path, value, headers={"if-match": etag}, allow=(412,), print="silent")
        if response.status_code == 412:
            logger.info(f"Conditional write on /{path} lost the race")
            return False
        return True

    def generate_id(self) -> str:
        return self._ids()

    def server_timestamp(self) -> dict:
        return dict(SERVER_TIMESTAMP)

    # ── Live subscriptions ────────────────────────────────────────────────
    def subscribe(self, path: str, callback) -> Subscription:
        """
        Starts the stream on the running loop, or on the loop this store was
        last used from when called from a worker thread.
        """
        subscription = Subscription(join_path(*split_path(path)), on_close=self._cancel_stream)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            self._loop = loop
            task = loop.create_task(self._stream(subscription, callback), name=f"stream-{subscription.path or 'root'}")
        elif self._loop is not None and not self._loop.is_closed():
            task = asyncio.run_coroutine_threadsafe(self._stream(subscription, callback), self._loop)
        else:
            raise RuntimeError("FirebaseStore.subscribe needs an event loop; subscribe from async code first")
        self._streams[id(subscription)] = task
        return subscription

    def _cancel_stream(self, subscription: Subscription):
        task = self._streams.pop(id(subscription), None)
        if task and not task.done():
            task.cancel()

    async def _stream(self, subscription: Subscription, callback):
        """
        Keeps one streaming connection open for the subscription and replays
        events onto a mirror of the subtree. Reconnects automatically on failure.
        """
        path = subscription.path
        backoff = _MIN_BACKOFF

        while subscription.active:
            logger.info(f"📡 Opening stream on /{path}")
            try:
                async with self._client.stream(
                    "GET", self._url(path), params=self._params(),
                    headers={"Accept": "text/event-stream"}, timeout=None,
                ) as response:
                    if response.status_code != 200:
                        logger.warning(f"⚠️  Stream /{path} returned HTTP {response.status_code}")
                    else:
                        backoff = _MIN_BACKOFF  # reset on success
                        keep_open = await self._consume(response, subscription, callback)
                        if not keep_open:
                            return

            except asyncio.CancelledError:
                raise
            except httpx.HTTPError as e:
                logger.warning(f"❌ Stream /{path} dropped: {e}. Retry in {backoff}s")
            except ValueError as e:
                logger.warning(f"❌ Stream /{path} sent an unreadable event: {e}. Retry in {backoff}s")

            if not subscription.active:
                return
            await asyncio.sleep(backoff)
            backoff = min(backoff * 2, _MAX_BACKOFF)

    async def _consume(self, response: httpx.Response, subscription: Subscription, callback) -> bool:
        """Read server-sent events until the stream ends. Returns False to stop for good."""
        mirror = None
        event = None
        async for line in response.aiter_lines():
            if not subscription.active:
                return False
            if line.startswith("event:"):
                event = line[len("event:"):].strip()
                continue
            if not line.startswith("data:"):
                continue

            data = line[len("data:"):].strip()
            if event in ("put", "patch"):
                payload = json.loads(data)
                if not isinstance(payload, dict):
                    raise ValueError(f"{event} payload is not an object: {data[:80]}")
                mirror = apply_stream_event(mirror, event, payload.get("path", "/"), payload.get("data"))
                deliver(callback, mirror, subscription.path)
            elif event == "cancel":
                logger.error(f"Stream /{subscription.path} cancelled by server: {data}")
                # Drop the task first so close() does not cancel the task running this code
                self._streams.pop(id(subscription), None)
                subscription.close()
                return False
            elif event == "auth_revoked":
                logger.warning(f"Stream /{subscription.path} auth revoked, reconnecting")
                return True
        return True

    async def close(self) -> None:
        for task in list(self._streams.values()):
            task.cancel()
        self._streams.clear()
        await self._client.aclose()


def apply_stream_event(mirror: Any, event: str, path: str, data: Any) -> Any:
    """Replay one `put` / `patch` stream event onto the local copy of the subtree."""
    segments = [s for s in path.strip("/").split("/") if s]
    if event == "put":
        return put_value(mirror, segments, data)
    for key, value in (data or {}).items():
        mirror = put_value(mirror, segments + [s for s in key.strip("/").split("/") if s], value)
    return mirror
