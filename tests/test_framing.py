"""
aichat-stream - Framing Tests

Verifies:
- Lines are identical however the body is split into chunks
- Multi-byte UTF-8 characters survive chunk boundaries
- data:/comment/blank line filtering
"""

import pytest

from aichat_stream.framing import FrameAssembler, extract_payload, is_done


BODY = (
    'data: {"type":"content","content":"你好, wörld 🚀"}\r\n'
    "\r\n"
    ": heartbeat\n"
    "event: message\n"
    'data: {"type":"usage","usage":{"total_tokens":3}}\n'
    "\n"
    "data: [DONE]\n"
).encode("utf-8")


def feed_all(assembler: FrameAssembler, chunks):
    lines = []
    for chunk in chunks:
        lines.extend(assembler.feed(chunk))
    return lines


# ============================================================
# FrameAssembler
# ============================================================

class TestFrameAssembler:
    """Test line assembly."""

    def test_whole_body(self):
        """Whole body yields every terminated line, CR stripped."""
        lines = FrameAssembler().feed(BODY)

        assert lines == [
            'data: {"type":"content","content":"你好, wörld 🚀"}',
            "",
            ": heartbeat",
            "event: message",
            'data: {"type":"usage","usage":{"total_tokens":3}}',
            "",
            "data: [DONE]",
        ]

    def test_every_two_way_split_matches(self):
        """Splitting the body at any byte offset gives the same lines."""
        expected = FrameAssembler().feed(BODY)

        for index in range(len(BODY) + 1):
            lines = feed_all(FrameAssembler(), [BODY[:index], BODY[index:]])
            assert lines == expected, f"split at {index}"

    def test_byte_by_byte_matches(self):
        """One byte per chunk gives the same lines."""
        expected = FrameAssembler().feed(BODY)
        chunks = [BODY[i:i + 1] for i in range(len(BODY))]

        assert feed_all(FrameAssembler(), chunks) == expected

    def test_three_way_splits_match(self):
        """Splitting in three pieces at varied offsets gives the same lines."""
        expected = FrameAssembler().feed(BODY)

        for first in range(0, len(BODY), 7):
            for second in range(first, len(BODY), 11):
                chunks = [BODY[:first], BODY[first:second], BODY[second:]]
                assert feed_all(FrameAssembler(), chunks) == expected

    def test_split_multibyte_character(self):
        """A character split across chunks is decoded once complete."""
        rocket = "🚀".encode("utf-8")
        assembler = FrameAssembler()

        assert assembler.feed(b"data: " + rocket[:2]) == []
        assert assembler.feed(rocket[2:] + b"\n") == ["data: 🚀"]

    def test_partial_line_stays_buffered(self):
        """Text after the last newline waits for more bytes."""
        assembler = FrameAssembler()

        assert assembler.feed(b"data: a\ndata: b") == ["data: a"]
        assert assembler.pending == "data: b"
        assert assembler.feed(b"c\n") == ["data: bc"]
        assert assembler.pending == ""

    def test_cr_split_from_lf(self):
        """A CRLF split between chunks still strips the CR."""
        assembler = FrameAssembler()

        assert assembler.feed(b"data: x\r") == []
        assert assembler.feed(b"\n") == ["data: x"]

    def test_only_one_trailing_cr_stripped(self):
        """Only the CR immediately before LF is removed."""
        assert FrameAssembler().feed(b"data: x\r\r\n") == ["data: x\r"]

    def test_close_discards_leftover(self):
        """Unterminated trailing text is dropped at the end."""
        assembler = FrameAssembler()
        assembler.feed(b'data: {"type":"content"')

        assembler.close()

        assert assembler.pending == ""

    def test_invalid_utf8_is_replaced(self):
        """Invalid bytes do not raise."""
        lines = FrameAssembler().feed(b"data: \xff\n")

        assert lines == ["data: \ufffd"]


# ============================================================
# Payload Extraction
# ============================================================

class TestExtractPayload:
    """Test data: line filtering."""

    @pytest.mark.parametrize("line", ["", ":", ": keepalive", "event: ping", "id: 3", "retry: 100"])
    def test_ignored_lines(self, line):
        """Blank, comment and non-data lines carry no payload."""
        assert extract_payload(line) is None

    def test_data_prefix_stripped_and_left_trimmed(self):
        assert extract_payload('data:   {"a":1}') == '{"a":1}'
        assert extract_payload('data:{"a":1}') == '{"a":1}'

    def test_trailing_whitespace_kept(self):
        assert extract_payload("data: [DONE] ") == "[DONE] "

    def test_blank_data_is_ignored(self):
        assert extract_payload("data:   ") is None

    def test_done_sentinel(self):
        assert is_done("[DONE]")
        assert not is_done("[DONE] ")
        assert not is_done('{"type":"complete"}')
