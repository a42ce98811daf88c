"""
aichat-stream - SSE Line Framing

Turns the raw bytes of a ``text/event-stream`` body into complete text
lines, independent of how the network split the body into chunks.
"""

import codecs
from typing import List, Optional

DONE_SENTINEL = "[DONE]"
DATA_PREFIX = "data:"


class FrameAssembler:
    """
    Incremental UTF-8 decoder and line splitter.

    Multi-byte characters split across two ``feed()`` calls are held back by
    the decoder until complete. Text after the last ``\\n`` stays buffered
    until more bytes arrive.

    Example:
        >>> assembler = FrameAssembler()
        >>> assembler.feed(b"data: a\\r\\nda")
        ['data: a']
        >>> assembler.feed(b"ta: b\\n")
        ['data: b']
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Buffered text that does not yet end in a line terminator."""
        return self._buffer

    def feed(self, data: bytes) -> List[str]:
        """Decode ``data`` and return every line it completed, in order."""
        self._buffer += self._decoder.decode(data)

        lines = []
        while True:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break
            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1:]
            if line.endswith("\r"):
                line = line[:-1]
            lines.append(line)
        return lines

    def close(self) -> None:
        """Flush the decoder and drop any unterminated trailing text."""
        self._decoder.decode(b"", final=True)
        self._decoder.reset()
        self._buffer = ""


def extract_payload(line: str) -> Optional[str]:
    """
    Return the payload of a ``data:`` line, or None if the line carries none.

    Blank lines, ``:`` comments (heartbeats) and any other SSE field
    (``event:``, ``id:``, ``retry:``) are ignored.
    """
    if not line or line.startswith(":"):
        return None
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):].lstrip()
    return payload or None


def is_done(payload: str) -> bool:
    """Check for the ``[DONE]`` success sentinel."""
    return payload == DONE_SENTINEL
