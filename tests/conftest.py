"""
aichat-stream - Pytest Configuration

Configures:
- Integration test markers (skip by default)
- Fake chat server built on httpx.MockTransport
- SSE body helpers
"""

import asyncio
import json
import logging
import os
from typing import Any, Callable, Iterable, List, Optional

import httpx
import pytest

from aichat_stream import ChatStreamClient, ClientConfig, RetryPolicy, StreamKeyRegistry


# ============================================================
# Environment Configuration
# ============================================================

def _is_truthy(value: Optional[str]) -> bool:
    """Check if environment variable is truthy."""
    if value is None:
        return False
    return value.lower() in ("1", "true", "yes", "on")


RUN_INTEGRATION = _is_truthy(os.getenv("RUN_INTEGRATION"))


# ============================================================
# Pytest Markers
# ============================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires RUN_INTEGRATION=1)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless RUN_INTEGRATION=1."""
    skip_integration = pytest.mark.skip(
        reason="Integration test - set RUN_INTEGRATION=1 to run"
    )

    for item in items:
        if "integration" in item.keywords and not RUN_INTEGRATION:
            item.add_marker(skip_integration)


# ============================================================
# SSE Helpers
# ============================================================

def sse(*events: Any) -> bytes:
    """
    Encode events as an SSE body.

    Dicts are JSON-encoded; strings are sent verbatim as the data payload.
    """
    parts = []
    for event in events:
        data = event if isinstance(event, str) else json.dumps(event, ensure_ascii=False)
        parts.append(f"data: {data}\n\n")
    return "".join(parts).encode("utf-8")


async def body_from(*chunks: bytes):
    """Async byte iterator yielding ``chunks`` one by one."""
    for chunk in chunks:
        yield chunk


async def collect(stream) -> List[Any]:
    return [chunk async for chunk in stream]


class ChunkedByteStream(httpx.AsyncByteStream):
    """
    Response body delivered in the given pieces.

    If ``hang`` is set, the body blocks after the last piece until the
    event fires, like a server that went quiet.
    """

    def __init__(self, chunks: Iterable[bytes], hang: Optional[asyncio.Event] = None):
        self._chunks = list(chunks)
        self._hang = hang
        self.closed = False

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk
        if self._hang is not None:
            await self._hang.wait()

    async def aclose(self) -> None:
        self.closed = True


def sse_response(
    *chunks: bytes,
    status_code: int = 200,
    hang: Optional[asyncio.Event] = None,
) -> httpx.Response:
    return httpx.Response(
        status_code,
        headers={"Content-Type": "text/event-stream"},
        stream=ChunkedByteStream(chunks, hang=hang),
    )


# ============================================================
# Fake Chat Server
# ============================================================

class FakeChatServer:
    """
    Queue of canned responses served through httpx.MockTransport.

    Usage:
        def test_something(fake_server):
            fake_server.add(sse_response(sse({"type": "complete"})))
            client = fake_server.client()
    """

    def __init__(self):
        self.responses: List[Any] = []
        self.requests: List[httpx.Request] = []
        self.request_received = asyncio.Event()

    def add(self, response: Any) -> "FakeChatServer":
        """Queue a response, or an exception to raise from the transport."""
        self.responses.append(response)
        return self

    def json_bodies(self) -> List[Any]:
        return [json.loads(request.content) for request in self.requests]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.request_received.set()
        if not self.responses:
            return httpx.Response(404, json={"error": "no response queued"})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def client(
        self,
        registry: Optional[StreamKeyRegistry] = None,
        on_unauthorized: Optional[Callable[[], Any]] = None,
        backoff: float = 0.0,
        debug: bool = False,
    ) -> ChatStreamClient:
        config = ClientConfig(
            base_url="http://testserver/api",
            retry=RetryPolicy(backoff=backoff),
            debug=debug,
        )
        return ChatStreamClient(
            config=config,
            registry=registry,
            on_unauthorized=on_unauthorized,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def fake_server():
    return FakeChatServer()


@pytest.fixture
def registry():
    return StreamKeyRegistry()


# ============================================================
# Logging Configuration
# ============================================================

@pytest.fixture(autouse=True)
def configure_test_logging():
    """Configure logging for tests."""
    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    yield

