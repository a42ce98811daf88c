"""
aichat-stream - Event Stream Reader

Consumes an open ``text/event-stream`` body and yields typed chunks.

Pipeline per read:
    bytes -> FrameAssembler (lines) -> extract_payload (data: only)
          -> [DONE] ends the loop | classify_line -> Chunk
    CompletionGuard is checked once the body is exhausted.
"""

from typing import AsyncIterator, Callable, Optional

from .classifier import classify_line
from .errors import StreamAbortedError
from .events import Chunk
from .framing import FrameAssembler, extract_payload, is_done
from .guard import CompletionGuard
from .logs import get_logger
from .registry import StreamController

logger = get_logger(__name__)


async def _next_bytes(iterator: AsyncIterator[bytes]) -> Optional[bytes]:
    """One body read. None means the body is exhausted."""
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return None


async def parse_event_stream(
    body: AsyncIterator[bytes],
    stream_key: str,
    controller: Optional[StreamController] = None,
    on_cleanup: Optional[Callable[[], None]] = None,
    debug: bool = False,
) -> AsyncIterator[Chunk]:
    """
    Yield the chunks carried by ``body`` in source order.

    Args:
        body: Async iterator over raw response bytes
        stream_key: Key reported in errors and logs
        controller: Cancellation handle; every read is raced against it
        on_cleanup: Called exactly once when the reader stops for any reason
        debug: Log malformed frames

    Raises:
        IncompleteStreamError: The body ended without ``[DONE]`` or a
            ``complete`` event.
        StreamAbortedError: The controller was aborted.
        ProtocolError: The server sent an unrecognised error payload.
    """
    controller = controller or StreamController()
    assembler = FrameAssembler()
    guard = CompletionGuard(stream_key)
    log = logger.bind(stream_key=stream_key)
    iterator = body.__aiter__()

    try:
        terminated = False
        while not terminated:
            data = await controller.run(_next_bytes(iterator))
            if data is None:
                break
            if debug:
                log.debug("Stream bytes received", size=len(data))

            for line in assembler.feed(data):
                controller.raise_if_aborted()
                payload = extract_payload(line)
                if payload is None:
                    continue
                if is_done(payload):
                    guard.mark_done()
                    terminated = True
                    break
                chunk = classify_line(payload, debug=debug)
                guard.observe(chunk)
                if chunk is not None:
                    yield chunk
    except StreamAbortedError as e:
        if e.stream_key is None:
            e.stream_key = stream_key
        log.debug("Stream aborted", reason=e.message)
        raise
    finally:
        assembler.close()
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
        if on_cleanup is not None:
            on_cleanup()

    if not guard.completed:
        log.warning("Stream closed before completion")
    guard.check()
