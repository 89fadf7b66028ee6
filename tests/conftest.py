"""Shared fixtures: an in-memory store seeded with trips, and a fake Realtime Database for the REST client."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("ATTENDANCE_MODE", "trip")
os.environ.setdefault("LOG_TO_FILE", "false")

import asyncio
import json
import time
import httpx
import pytest
from transit_checkin.store.base import get_value, put_value, resolve_server_values, split_path
from transit_checkin.store.memory import MemoryStore
from transit_checkin.views.trip_directory import TripDirectory

TRIPS = {
    "t1": {"from": "A", "to": "B", "directionHint": "IDA", "active": True},
    "t2": {"from": "B", "to": "A", "directionHint": "VUELTA", "active": False},
    "t3": {"label": "Evening shuttle", "from": "C", "to": "D", "directionHint": "", "active": True},
    "t4": {"from": "B", "to": "A", "directionHint": "VUELTA", "active": True},
}


class StepClock:
    """Epoch-ms clock that advances one second per call, so timestamps are ordered."""

    def __init__(self, start=1709631000000):
        self.now = start

    def __call__(self):
        self.now += 1000
        return self.now


@pytest.fixture
def store():
    return MemoryStore(data={"trips": TRIPS}, clock=StepClock())


@pytest.fixture
def trips(store):
    directory = TripDirectory(store)
    directory.start()
    yield directory
    directory.stop()


class OpenStream(httpx.AsyncByteStream):
    """Sends the given bytes, then stays open like an idle event stream."""

    def __init__(self, first: bytes):
        self.first = first

    async def __aiter__(self):
        yield self.first
        await asyncio.Event().wait()


def sse(*events):
    """Encode (event, data) pairs the way the database streams them."""
    return "".join(f"event: {name}\ndata: {json.dumps(data)}\n\n" for name, data in events).encode()


class FakeFirebase:
    """
    Serves the Realtime Database REST endpoints from an in-memory tree:
    GET (with ETag), PUT (honours if-match), root or nested PATCH, DELETE,
    and streaming GETs that send one `put` of the current value then stay open.
    """

    def __init__(self, data=None):
        self.tree = put_value(None, [], data or {})
        self.version = 0
        self.requests = []

    def client(self):
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def handler(self, request):
        self.requests.append(request)
        segments = split_path(request.url.path[: -len(".json")])

        if request.headers.get("accept") == "text/event-stream":
            body = sse(("put", {"path": "/", "data": get_value(self.tree, segments)}))
            return httpx.Response(200, headers={"content-type": "text/event-stream"}, stream=OpenStream(body))

        if request.method == "GET":
            return httpx.Response(
                200, content=json.dumps(get_value(self.tree, segments)).encode(),
                headers={"content-type": "application/json", "ETag": f"v{self.version}"},
            )

        body = json.loads(request.content) if request.content else None
        if request.method == "PUT":
            if "if-match" in request.headers and request.headers["if-match"] != f"v{self.version}":
                return httpx.Response(412, json={"error": "ETag mismatch"})
            self.write([(segments, body)])
        elif request.method == "PATCH":
            self.write([(segments + split_path(key), value) for key, value in body.items()])
        elif request.method == "DELETE":
            self.write([(segments, None)])
        return httpx.Response(204)

    def write(self, changes):
        now = int(time.time() * 1000)
        for segments, value in changes:
            self.tree = put_value(self.tree, segments, resolve_server_values(value, now))
        self.version += 1


@pytest.fixture
def fake_firebase():
    return FakeFirebase({"trips": TRIPS})
