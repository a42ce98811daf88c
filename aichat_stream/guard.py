"""
aichat-stream - Completion Guard

A connection can be closed mid-response by a proxy or a crashed server
without any terminal frame. The guard records whether a completion marker
was seen so that such a body is reported as an error instead of looking like
a finished reply.
"""

from typing import Optional

from .errors import IncompleteStreamError
from .events import Chunk, StreamComplete


class CompletionGuard:
    """Tracks the completion marker of a single stream."""

    def __init__(self, stream_key: str):
        self.stream_key = stream_key
        self._completed = False

    @property
    def completed(self) -> bool:
        """True once ``[DONE]`` or a ``complete`` event was seen. Never resets."""
        return self._completed

    def mark_done(self) -> None:
        self._completed = True

    def observe(self, chunk: Optional[Chunk]) -> None:
        if isinstance(chunk, StreamComplete):
            self._completed = True

    def check(self) -> None:
        """
        Called when the body is exhausted.

        Raises:
            IncompleteStreamError: No completion marker was seen.
        """
        if not self._completed:
            raise IncompleteStreamError(stream_key=self.stream_key)
