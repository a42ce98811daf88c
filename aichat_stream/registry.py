"""
aichat-stream - Stream Key Registry

Owns one cancellation controller per in-flight stream.

A registry is constructed once by the application and passed to every
client that issues streams, so cancellation can reach a stream from
anywhere (a stop button, a tab closing, a logout).
"""

from __future__ import annotations

import asyncio
import random
import string
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from .errors import StreamAbortedError
from .logs import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_stream_key(session_id: Any) -> str:
    """
    Build a key unique across tabs streaming the same chat session.

    Format: ``session:<id>:<base36 epoch ms>:<random base36>``.
    """
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(random.choice(_BASE36) for _ in range(10))
    return f"session:{session_id}:{timestamp}:{suffix}"


def resolve_stream_key(session_id: Any, stream_key: Optional[str] = None) -> str:
    """Use the caller's key when it is non-blank, otherwise generate one."""
    if isinstance(stream_key, str) and stream_key.strip():
        return stream_key.strip()
    return generate_stream_key(session_id)


class StreamController:
    """
    Cooperative cancellation handle for one stream.

    Every suspension point of a stream (the request, the retry backoff,
    each body read) is awaited through ``run`` or ``sleep`` so that
    ``abort()`` wakes it immediately.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def abort(self, reason: str = "Stream aborted") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_aborted(self) -> None:
        if self._event.is_set():
            raise StreamAbortedError(self.reason or "Stream aborted")

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless the controller is aborted first.

        Raises:
            StreamAbortedError: ``abort()`` was called before it finished.
        """
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            self.raise_if_aborted()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        try:
            await task
        except (asyncio.CancelledError, Exception):
            pass
        raise StreamAbortedError(self.reason or "Stream aborted")

    async def sleep(self, delay: float) -> None:
        """Abortable ``asyncio.sleep``."""
        await self.run(asyncio.sleep(delay))


@dataclass
class StreamSession:
    """A registered in-flight stream."""
    key: str
    controller: StreamController
    started_at: float = field(default_factory=time.time)


class StreamKeyRegistry:
    """
    Maps stream keys to their controllers.

    Registering a key that is still live aborts the stream previously
    registered under it; two streams never share a key.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, StreamSession] = {}

    def register(self, key: str, controller: StreamController) -> StreamSession:
        previous = self._sessions.get(key)
        if previous is not None and previous.controller is not controller:
            logger.info("Aborting stream replaced by a new registration", stream_key=key)
            previous.controller.abort("Stream replaced by a newer request")

        session = StreamSession(key=key, controller=controller)
        self._sessions[key] = session
        return session

    def get(self, key: str) -> Optional[StreamSession]:
        return self._sessions.get(key)

    def keys(self) -> List[str]:
        return list(self._sessions)

    def release(self, key: str, controller: StreamController) -> bool:
        """
        Remove ``key`` if it is still owned by ``controller``.

        Called from every stream's cleanup, whatever the outcome. A key
        that was cancelled or re-registered in the meantime is left alone.
        """
        session = self._sessions.get(key)
        if session is None or session.controller is not controller:
            return False
        del self._sessions[key]
        return True

    def cancel(self, key: str) -> bool:
        """Abort and forget one stream. Unknown keys are a no-op."""
        session = self._sessions.pop(key, None)
        if session is None:
            return False
        logger.debug("Cancelling stream", stream_key=key)
        session.controller.abort("Stream cancelled")
        return True

    def cancel_all(self) -> int:
        """Abort every registered stream. Returns how many were aborted."""
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            session.controller.abort("Stream cancelled")
        if sessions:
            logger.debug("Cancelled all streams", count=len(sessions))
        return len(sessions)

    def __contains__(self, key: object) -> bool:
        return key in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
