"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

import asyncio
import sys
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Deque, Generator, Optional

import httpx
import pytest

# Make the package importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent))

UPSTREAM_HOST = "upstream.local"
UPSTREAM_URL = f"http://{UPSTREAM_HOST}/api/chat"

# The canonical scenario: three text deltas around an ignored event line.
SCENARIO_BODY = '0:"Hel"\n0:"lo"\n1:ignored\n0:"!"'


# =============================================================================
# Fake upstream
# =============================================================================


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in explicit chunks.

    ``error`` is raised after the last chunk to simulate a dropped
    connection; ``hang`` keeps the stream open forever instead of ending it.
    """

    def __init__(
        self,
        chunks: list[bytes],
        error: Optional[Exception] = None,
        hang: bool = False,
    ) -> None:
        self.chunks = chunks
        self.error = error
        self.hang = hang
        self.closed = False
        self.chunks_sent = 0

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            self.chunks_sent += 1
            yield chunk
        if self.error is not None:
            raise self.error
        if self.hang:
            await asyncio.Event().wait()

    async def aclose(self) -> None:
        self.closed = True


@dataclass
class UpstreamReply:
    """A queued reply for the fake upstream."""

    status_code: int = 200
    chunks: list[bytes] = field(default_factory=list)
    error: Optional[Exception] = None
    hang: bool = False
    raise_on_connect: Optional[Exception] = None

    @classmethod
    def text(cls, body: str, status_code: int = 200) -> "UpstreamReply":
        return cls(status_code=status_code, chunks=[body.encode("utf-8")])


class FakeUpstream:
    """Records every upstream request and answers with queued replies."""

    def __init__(self) -> None:
        self.replies: Deque[UpstreamReply] = deque()
        self.requests: list[httpx.Request] = []
        self.streams: list[ChunkedStream] = []
        self.transport = httpx.MockTransport(self.handle)

    def queue(self, reply: UpstreamReply) -> "FakeUpstream":
        self.replies.append(reply)
        return self

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies.popleft() if self.replies else UpstreamReply()
        if reply.raise_on_connect is not None:
            raise reply.raise_on_connect
        stream = ChunkedStream(reply.chunks, error=reply.error, hang=reply.hang)
        self.streams.append(stream)
        return httpx.Response(reply.status_code, stream=stream)


# =============================================================================
# Fixtures
# =============================================================================


def build_config(url: str = UPSTREAM_URL, **upstream_overrides: Any) -> dict[str, Any]:
    upstream = {"url": url, "timeout": 5}
    upstream.update(upstream_overrides)
    return {
        "upstream": upstream,
        "model": {"id": "movement", "owned_by": "movement-labs"},
        "proxy_settings": {"server": {"host": "127.0.0.1", "port": 9999}},
    }


@pytest.fixture
def clear_transport_registry() -> Generator[None, None, None]:
    """Clear upstream transport registry after test."""
    from movement_proxy.core.upstream_transport import clear_upstream_transports

    yield
    clear_upstream_transports()


@pytest.fixture
def fake_upstream(clear_transport_registry) -> FakeUpstream:
    from movement_proxy.core.upstream_transport import register_upstream_transport

    upstream = FakeUpstream()
    register_upstream_transport(UPSTREAM_URL, upstream.transport)
    return upstream


@pytest.fixture
def proxy_app(fake_upstream):
    from movement_proxy.main import create_app

    return create_app(build_config())


@pytest.fixture
def client(proxy_app):
    from fastapi.testclient import TestClient

    with TestClient(proxy_app) as test_client:
        yield test_client


def split_sse_frames(body: bytes) -> list[str]:
    """Split an SSE body into the payloads of its ``data:`` frames."""
    text = body.decode("utf-8")
    assert text.endswith("\n\n"), "stream must end with a complete frame"
    frames = text[:-2].split("\n\n")
    payloads = []
    for frame in frames:
        assert frame.startswith("data: "), frame
        payloads.append(frame[len("data: "):])
    return payloads
