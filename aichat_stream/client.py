"""
aichat-stream - Async Chat Stream Client

Opens the chat stream, applies the pre-stream retry policy and hands the
body to the event stream reader.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, AsyncIterator, Callable, Dict, Mapping, Optional, Sequence

import httpx

from . import __version__
from .config import ClientConfig
from .errors import (
    ConnectionError,
    HttpError,
    QuotaExceededError,
    StreamAbortedError,
    TimeoutError,
    UnauthorizedError,
)
from .events import Chunk
from .logs import StructuredLogger, get_logger
from .payloads import ImageInput, build_cancel_payload, build_stream_payload
from .reader import parse_event_stream
from .registry import StreamController, StreamKeyRegistry, resolve_stream_key

logger = get_logger(__name__)

STREAM_PATH = "/chat/stream"
CANCEL_PATH = "/chat/stream/cancel"


class ChatStreamClient:
    """
    Async client for the chat stream endpoint.

    Args:
        base_url: API base URL. Overrides ``config.base_url``.
        config: Client configuration. Defaults to ``ClientConfig.from_env()``.
        registry: Shared stream registry. Pass the same registry to every
            client whose streams should be cancellable together.
        on_unauthorized: Called before ``UnauthorizedError`` is raised, so
            the auth layer can clear the session and redirect to login.
        http_client: Pre-built ``httpx.AsyncClient``. Not closed by ``close()``.
        transport: Custom httpx transport (e.g. ``httpx.MockTransport``).

    Example:
        >>> registry = StreamKeyRegistry()
        >>> async with ChatStreamClient(registry=registry) as client:
        ...     async for chunk in client.stream_chat(42, "Hello!"):
        ...         if isinstance(chunk, ContentDelta):
        ...             print(chunk.content, end="", flush=True)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        registry: Optional[StreamKeyRegistry] = None,
        on_unauthorized: Optional[Callable[[], Any]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = config or ClientConfig.from_env()
        if base_url:
            config = replace(config, base_url=base_url)
        self.config = config
        self.registry = registry if registry is not None else StreamKeyRegistry()
        self.on_unauthorized = on_unauthorized

        self._transport = transport
        self._client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {
                "Content-Type": "application/json",
                "User-Agent": f"aichat-stream/{__version__}",
            }
            headers.update(self.config.headers)
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers=headers,
                cookies=self.config.cookies,
                timeout=self.config.http_timeout(),
                transport=self._transport,
            )
            self._owns_client = True
        return self._client

    # ============================================================
    # Streaming
    # ============================================================

    async def stream_chat(
        self,
        session_id: Any,
        content: str,
        images: Optional[Sequence[ImageInput]] = None,
        options: Optional[Mapping[str, Any]] = None,
        stream_key: Optional[str] = None,
    ) -> AsyncIterator[Chunk]:
        """
        Send a message and yield the reply as typed chunks.

        The stream is registered under ``stream_key`` (or
        ``options["streamKey"]``, or a generated key) before the request is
        sent, so ``cancel_stream`` works during connection setup too.

        Args:
            session_id: Chat session id.
            content: User message text.
            images: Inline image attachments.
            options: Feature options sent with the request.
            stream_key: Key to cancel this stream by.

        Yields:
            Chunks in the order the server sent them.

        Raises:
            UnauthorizedError: HTTP 401.
            QuotaExceededError: HTTP 429 on the first attempt.
            HttpError: Any other non-2xx response.
            IncompleteStreamError: The body ended without a completion marker.
            ProtocolError: The server sent an unrecognised error payload.
            StreamAbortedError: The stream was cancelled.
        """
        if stream_key is None and options:
            stream_key = options.get("streamKey")
        key = resolve_stream_key(session_id, stream_key)
        payload = build_stream_payload(session_id, content, images, options)

        controller = StreamController()
        self.registry.register(key, controller)
        log = logger.bind(stream_key=key, session_id=session_id)

        response: Optional[httpx.Response] = None
        try:
            response = await self._open_stream(payload, controller, log)
            log.debug("Stream opened", status_code=response.status_code)

            events = parse_event_stream(
                response.aiter_bytes(),
                key,
                controller=controller,
                debug=self.config.debug,
            )
            try:
                async for chunk in events:
                    yield chunk
            finally:
                await events.aclose()
        except StreamAbortedError as e:
            if e.stream_key is None:
                e.stream_key = key
            raise
        finally:
            if response is not None:
                await response.aclose()
            self.registry.release(key, controller)

    async def _open_stream(
        self,
        payload: Dict[str, Any],
        controller: StreamController,
        log: StructuredLogger,
    ) -> httpx.Response:
        """Send the request, retrying server errors per the retry policy."""
        client = await self._get_client()
        policy = self.config.retry
        attempt = 0

        while True:
            response = await self._send(client, payload, controller)
            status = response.status_code

            if status == 401:
                await response.aclose()
                log.info("Stream request unauthorized")
                if self.on_unauthorized is not None:
                    self.on_unauthorized()
                raise UnauthorizedError()

            if status == 429 and attempt == 0:
                body = await self._read_json(response, controller)
                log.info("Stream request over quota")
                raise QuotaExceededError(payload=body)

            if policy.should_retry(status, attempt):
                await response.aclose()
                delay = policy.delay_for(attempt)
                log.warning(
                    "Server error opening stream, retrying",
                    status_code=status,
                    attempt=attempt + 1,
                    delay=delay,
                )
                await controller.sleep(delay)
                attempt += 1
                continue

            if not response.is_success:
                body = await self._read_json(response, controller)
                log.warning("Stream request failed", status_code=status)
                raise HttpError(status, payload=body)

            return response

    async def _send(
        self,
        client: httpx.AsyncClient,
        payload: Dict[str, Any],
        controller: StreamController,
    ) -> httpx.Response:
        request = client.build_request(
            "POST",
            STREAM_PATH,
            json=payload,
            headers={"Accept": "text/event-stream"},
        )
        try:
            return await controller.run(client.send(request, stream=True))
        except httpx.TimeoutException:
            raise TimeoutError("Request timed out")
        except httpx.ConnectError:
            raise ConnectionError("Failed to connect to server")
        except httpx.RequestError as e:
            raise ConnectionError(f"Request failed: {e}")

    @staticmethod
    async def _read_json(
        response: httpx.Response, controller: StreamController
    ) -> Optional[Any]:
        """Parsed JSON body of an error response, or None."""
        try:
            await controller.run(response.aread())
            return response.json()
        except ValueError:
            return None
        finally:
            await response.aclose()

    # ============================================================
    # Cancellation
    # ============================================================

    def cancel_stream(self, stream_key: Optional[str] = None) -> int:
        """
        Stop reading one stream, or every stream when no key is given.

        Only the local read loop is torn down; use ``cancel_agent_stream``
        to also ask the server to stop generating.

        Returns:
            Number of streams cancelled.
        """
        if stream_key:
            return 1 if self.registry.cancel(stream_key) else 0
        return self.registry.cancel_all()

    async def cancel_agent_stream(
        self,
        session_id: Any,
        client_message_id: Optional[str] = None,
        message_id: Optional[Any] = None,
    ) -> bool:
        """
        Ask the server to stop generating a reply.

        Best effort: failures are logged and reported as False, never raised.

        Returns:
            True if the server accepted the request.
        """
        payload = build_cancel_payload(session_id, client_message_id, message_id)
        if payload is None:
            return False

        log = logger.bind(session_id=session_id)
        try:
            client = await self._get_client()
            response = await client.post(CANCEL_PATH, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            log.debug("Ignoring stream cancel failure", error=str(e))
            return False
        return True

    # ============================================================
    # Lifecycle
    # ============================================================

    async def close(self):
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
