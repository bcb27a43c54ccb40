"""
Shared fixtures for acquisition tests.

FakeUpstream serves canned responses per host through httpx.MockTransport,
with optional latency, and records which requests were cancelled.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type, Union

import httpx

from quoteracer.contracts import SourceDescriptor
from quoteracer.normalizers import NORMALIZERS


HOST_A = "a.example"
HOST_B = "b.example"
HOST_C = "c.example"

DUMMYJSON_PAYLOAD = {"id": 420, "quote": "Q", "author": "Au"}
ZENQUOTES_PAYLOAD = [{"q": "Zen text", "a": "Zen Author"}]
PROGRAMMING_PAYLOAD = {"quote": "Talk is cheap. Show me the code.", "author": "Linus Torvalds"}
CATFACT_PAYLOAD = {"fact": "A cat's nose is as unique as a human's fingerprint.", "length": 51}
RANDOMUSER_PAYLOAD = {
    "results": [{
        "name": {"title": "Ms", "first": "Ada", "last": "Lovelace"},
        "location": {"city": "London", "state": "Greater London", "country": "United Kingdom"},
        "login": {"uuid": "7f3c-uuid"},
    }]
}


def make_source(source_id: str, host: str, shape: str = "dummyjson", enabled: bool = True) -> SourceDescriptor:
    return SourceDescriptor(
        source_id=source_id,
        name=source_id.title(),
        url=f"https://{host}/quote",
        shape=shape,
        normalize=NORMALIZERS[shape],
        enabled=enabled,
    )


@dataclass
class Route:
    json: Any = None
    status: int = 200
    delay: float = 0.0
    error: Optional[Union[Type[Exception], Exception]] = None
    content: Optional[bytes] = None


class FakeUpstream:
    """Per-host canned responses for an httpx.AsyncClient."""

    def __init__(self):
        self.routes: Dict[str, Route] = {}
        self.calls: List[str] = []
        self.cancelled: List[str] = []
        self.completed: List[str] = []

    def add(self, host: str, **kwargs) -> "FakeUpstream":
        self.routes[host] = Route(**kwargs)
        return self

    async def handler(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        route = self.routes[host]
        self.calls.append(host)

        try:
            if route.delay:
                await asyncio.sleep(route.delay)
        except asyncio.CancelledError:
            self.cancelled.append(host)
            raise

        self.completed.append(host)
        if isinstance(route.error, Exception):
            raise route.error
        if route.error is not None:
            raise route.error("upstream unreachable", request=request)
        if route.content is not None:
            return httpx.Response(route.status, content=route.content)
        return httpx.Response(route.status, json=route.json)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport())
