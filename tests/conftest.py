"""
Shared fixtures: an in-process fake of the dashboard service.

The fake answers through httpx.MockTransport, so no sockets are opened.
"""

import asyncio
import json
from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Optional

import httpx
import pytest

from dashboard.api.client import ClusterApiClient
from dashboard.store.store import ClusterStore

BASE_URL = "http://dashboard.test"


def node_report(node_id: int, state: str = "follower", blacklist=None, events=None, **extra) -> Dict[str, Any]:
    report = {
        "id": node_id,
        "state": state,
        "blacklist": blacklist or [],
        "events": events or [],
    }
    report.update(extra)
    return report


def event(node_id: int, when: str, name: str = "tick", term: int = 1) -> Dict[str, Any]:
    return {"nodeId": node_id, "event": name, "term": term, "time": when}


def sse_body(*messages: Any) -> bytes:
    """Encode messages as server-sent events. Non-str messages are JSON-encoded."""
    chunks = []
    for message in messages:
        text = message if isinstance(message, str) else json.dumps(message)
        chunks.append(f"data: {text}\n\n")
    return "".join(chunks).encode()


async def _held_open(body: bytes):
    yield body
    await asyncio.Event().wait()


async def eventually(predicate, timeout: float = 2.0) -> None:
    """Yield to the event loop until `predicate()` holds."""
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.01)
    await asyncio.wait_for(_poll(), timeout)


class FakeClusterService:
    """
    Scriptable dashboard service.

    - node_states[id]: dict -> JSON body, None -> JSON null, int -> bare
      status code, Exception -> raised as a transport error
    - streams[(path, id)]: queue of (SSE body, hold) pairs, one per
      connection; an empty queue answers 503
    - topology_gate: when set, /cluster-info waits on it
    """

    def __init__(self, node_ids: Optional[List[int]] = None):
        self.node_ids = list(node_ids or [])
        self.node_states: Dict[int, Any] = {}
        self.configs: Dict[str, Any] = {
            "/config/cluster": "cluster: v1",
            "/config/instance": "instance: v1",
        }
        self.signatures: List[Dict[str, Any]] = []
        self.streams: Dict[tuple, Deque[tuple]] = defaultdict(deque)
        self.topology_error: Optional[int] = None
        self.topology_gate: Optional[asyncio.Event] = None
        self.requests: List[httpx.Request] = []

    def count(self, path: str) -> int:
        return sum(1 for request in self.requests if request.url.path == path)

    def push_stream(self, path: str, node_id: Optional[int], *messages: Any, hold: bool = True) -> None:
        """Queue one connection. With `hold`, the connection stays open after the messages."""
        self.streams[(path, node_id)].append((sse_body(*messages), hold))

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        node_param = request.url.params.get("id")
        node_id = int(node_param) if node_param is not None else None

        if request.headers.get("accept") == "text/event-stream":
            queue = self.streams[(path, node_id)]
            if not queue:
                return httpx.Response(503)
            body, hold = queue.popleft()
            return httpx.Response(
                200,
                content=_held_open(body) if hold else body,
                headers={"content-type": "text/event-stream"},
            )

        if path == "/cluster-info":
            if self.topology_gate is not None:
                await self.topology_gate.wait()
            if self.topology_error is not None:
                return httpx.Response(self.topology_error)
            return httpx.Response(200, json={"nodes": [{"id": n} for n in self.node_ids]})

        if path == "/node-state":
            value = self.node_states.get(node_id, 404)
            if isinstance(value, Exception):
                raise value
            if isinstance(value, int):
                return httpx.Response(value)
            return httpx.Response(200, content=json.dumps(value).encode(),
                                  headers={"content-type": "application/json"})

        if path in self.configs:
            value = self.configs[path]
            if isinstance(value, int):
                return httpx.Response(value)
            return httpx.Response(200, text=value)

        if path == "/signatures":
            return httpx.Response(200, json=self.signatures)

        if path == "/network-sever":
            return httpx.Response(301, headers={"location": "/dashboard"})

        if path in ("/node-stop", "/node-start"):
            return httpx.Response(200)

        return httpx.Response(404)

    def client(self, **kwargs) -> ClusterApiClient:
        options = dict(
            base_url=BASE_URL,
            max_retries=2,
            backoff_min=0,
            backoff_max=0,
            transport=httpx.MockTransport(self.handler),
        )
        options.update(kwargs)
        return ClusterApiClient(**options)

    def store(self, mode: str = "pull", **kwargs) -> ClusterStore:
        return ClusterStore(self.client(), mode=mode, **kwargs)


@pytest.fixture()
def service():
    return FakeClusterService(node_ids=[1, 2, 3])
