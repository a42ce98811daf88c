"""
aichat-stream

Client-side consumer for the AI chat streaming endpoint.

Quick Start:
    from aichat_stream import ChatStreamClient, ContentDelta

    async with ChatStreamClient(base_url="https://chat.example.com/api") as client:
        async for chunk in client.stream_chat(42, "Hello!"):
            if isinstance(chunk, ContentDelta):
                print(chunk.content, end="", flush=True)

    # Stop a stream from elsewhere (stop button, tab close)
    client.cancel_stream(stream_key)
"""

__version__ = "1.0.0"

from .client import ChatStreamClient
from .config import ClientConfig
from .events import (
    Chunk,
    ContentDelta,
    UsageChunk,
    ReasoningChunk,
    ReasoningUnavailable,
    ToolEvent,
    ImageEvent,
    ArtifactEvent,
    StreamStart,
    StreamEnd,
    StreamComplete,
    SkillApprovalRequest,
    SkillApprovalResult,
    QuotaChunk,
    ErrorChunk,
)
from .errors import (
    ChatStreamError,
    UnauthorizedError,
    QuotaExceededError,
    HttpError,
    ProtocolError,
    IncompleteStreamError,
    StreamAbortedError,
    TimeoutError,
    ConnectionError,
    is_retryable_error,
    user_message,
)
from .classifier import classify, classify_line, try_parse
from .framing import FrameAssembler, extract_payload
from .guard import CompletionGuard
from .payloads import ImageAttachment, build_stream_payload, build_cancel_payload
from .reader import parse_event_stream
from .registry import (
    StreamController,
    StreamKeyRegistry,
    StreamSession,
    generate_stream_key,
)
from .retry import RetryPolicy
from .utils import stream_chat, cancel_stream, cancel_agent_stream, set_default_client

__all__ = [
    # Client
    "ChatStreamClient",
    "ClientConfig",
    "RetryPolicy",
    # Chunks
    "Chunk",
    "ContentDelta",
    "UsageChunk",
    "ReasoningChunk",
    "ReasoningUnavailable",
    "ToolEvent",
    "ImageEvent",
    "ArtifactEvent",
    "StreamStart",
    "StreamEnd",
    "StreamComplete",
    "SkillApprovalRequest",
    "SkillApprovalResult",
    "QuotaChunk",
    "ErrorChunk",
    # Errors
    "ChatStreamError",
    "UnauthorizedError",
    "QuotaExceededError",
    "HttpError",
    "ProtocolError",
    "IncompleteStreamError",
    "StreamAbortedError",
    "TimeoutError",
    "ConnectionError",
    "is_retryable_error",
    "user_message",
    # Pipeline
    "FrameAssembler",
    "extract_payload",
    "classify",
    "classify_line",
    "try_parse",
    "CompletionGuard",
    "parse_event_stream",
    # Cancellation
    "StreamController",
    "StreamKeyRegistry",
    "StreamSession",
    "generate_stream_key",
    # Payloads
    "ImageAttachment",
    "build_stream_payload",
    "build_cancel_payload",
    # Convenience functions
    "stream_chat",
    "cancel_stream",
    "cancel_agent_stream",
    "set_default_client",
]
