"""
aichat-stream - Event Classifier

Maps one decoded ``data:`` payload to at most one typed chunk.

Dispatch is a table keyed on the payload's ``type``. Each handler validates
only its own fields and returns None when the payload is too empty to be
worth emitting. Unknown types are ignored so that newer servers can add
events without breaking older clients.
"""

import json
from typing import Any, Callable, Dict, Optional

from .errors import ProtocolError
from .events import (
    ArtifactEvent,
    Chunk,
    ContentDelta,
    ErrorChunk,
    ImageEvent,
    QuotaChunk,
    ReasoningChunk,
    ReasoningUnavailable,
    SkillApprovalRequest,
    SkillApprovalResult,
    StreamComplete,
    StreamEnd,
    StreamStart,
    ToolEvent,
    UsageChunk,
)
from .logs import get_logger

logger = get_logger(__name__)

DEFAULT_ERROR_MESSAGE = "Tool call failed, please try again later"


def try_parse(raw: str, debug: bool = False) -> Optional[Any]:
    """
    Decode a JSON payload, returning None if it is malformed.

    Malformed frames (including ones nested too deeply to decode) never
    abort the stream. They are reported only when ``debug`` is set.
    """
    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as e:
        if debug:
            logger.debug("Ignoring malformed stream payload", error=str(e), payload=raw[:120])
        return None


# ============================================================
# Field helpers
# ============================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_int(value: Any) -> Optional[int]:
    """Coerce an id to int; anything unparseable becomes None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _first_int(payload: Dict[str, Any], *keys: str) -> Optional[int]:
    for key in keys:
        value = _as_int(payload.get(key))
        if value is not None:
            return value
    return None


def _first_str(payload: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str):
            return value
    return None


# ============================================================
# Per-type handlers
# ============================================================

def _content(payload: Dict[str, Any]) -> Optional[Chunk]:
    content = payload.get("content")
    if isinstance(content, str) and content:
        return ContentDelta(content=content)
    # Bare numbers are still text to the reader.
    if _is_number(content) and content:
        return ContentDelta(content=str(content))
    return None


def _usage(payload: Dict[str, Any]) -> Optional[Chunk]:
    usage = payload.get("usage")
    if isinstance(usage, dict):
        return UsageChunk(usage=usage)
    return None


def _reasoning(payload: Dict[str, Any]) -> Optional[Chunk]:
    meta = payload.get("meta")
    if payload.get("done"):
        duration = payload.get("duration")
        return ReasoningChunk(
            done=True,
            duration=duration if _is_number(duration) else None,
            meta=meta,
        )
    if payload.get("keepalive"):
        idle_ms = payload.get("idle_ms")
        return ReasoningChunk(
            keepalive=True,
            idle_ms=idle_ms if _is_number(idle_ms) else None,
            meta=meta,
        )
    content = payload.get("content")
    if isinstance(content, str) and content:
        return ReasoningChunk(content=content, meta=meta)
    return None


def _reasoning_unavailable(payload: Dict[str, Any]) -> Optional[Chunk]:
    return ReasoningUnavailable(
        code=payload.get("code"),
        reason=payload.get("reason"),
        suggestion=payload.get("suggestion"),
        protocol=payload.get("protocol"),
        decision=payload.get("decision"),
    )


def _tool(payload: Dict[str, Any]) -> Optional[Chunk]:
    return ToolEvent(
        tool=payload.get("tool"),
        stage=payload.get("stage"),
        id=payload.get("id"),
        query=payload.get("query"),
        hits=payload.get("hits"),
        error=payload.get("error"),
        summary=payload.get("summary"),
        details=payload.get("details"),
        meta=payload.get("meta"),
    )


def _image(payload: Dict[str, Any]) -> Optional[Chunk]:
    return ImageEvent(
        generated_images=payload.get("generatedImages"),
        message_id=payload.get("messageId"),
    )


def _artifact(payload: Dict[str, Any]) -> Optional[Chunk]:
    artifacts = payload.get("artifacts")
    if not isinstance(artifacts, list):
        return None
    return ArtifactEvent(artifacts=artifacts, message_id=payload.get("messageId"))


def _start(payload: Dict[str, Any]) -> Optional[Chunk]:
    # Older servers send snake_case ids.
    return StreamStart(
        message_id=_first_int(payload, "messageId", "message_id"),
        assistant_message_id=_first_int(
            payload, "assistantMessageId", "assistant_message_id"
        ),
        assistant_client_message_id=_first_str(
            payload, "assistantClientMessageId", "assistant_client_message_id"
        ),
    )


def _end(payload: Dict[str, Any]) -> Optional[Chunk]:
    return StreamEnd()


def _complete(payload: Dict[str, Any]) -> Optional[Chunk]:
    return StreamComplete()


def _skill_approval_request(payload: Dict[str, Any]) -> Optional[Chunk]:
    return SkillApprovalRequest(
        request_id=payload.get("requestId"),
        skill_id=payload.get("skillId"),
        skill_slug=payload.get("skillSlug"),
        skill_version_id=payload.get("skillVersionId"),
        tool=payload.get("tool"),
        tool_call_id=payload.get("toolCallId"),
        reason=payload.get("reason"),
        expires_at=payload.get("expiresAt"),
    )


def _skill_approval_result(payload: Dict[str, Any]) -> Optional[Chunk]:
    return SkillApprovalResult(
        request_id=payload.get("requestId"),
        skill_id=payload.get("skillId"),
        skill_slug=payload.get("skillSlug"),
        tool=payload.get("tool"),
        tool_call_id=payload.get("toolCallId"),
        decision=payload.get("decision"),
    )


def _quota(payload: Dict[str, Any]) -> Optional[Chunk]:
    quota = payload.get("quota")
    if isinstance(quota, dict):
        return QuotaChunk(quota=quota)
    return None


def _error(payload: Dict[str, Any]) -> Optional[Chunk]:
    error = payload.get("error")
    message = error if isinstance(error, str) and error.strip() else DEFAULT_ERROR_MESSAGE
    return ErrorChunk(
        error=message,
        error_type=payload.get("errorType"),
        suggestion=payload.get("suggestion"),
    )


HANDLERS: Dict[str, Callable[[Dict[str, Any]], Optional[Chunk]]] = {
    "content": _content,
    "usage": _usage,
    "reasoning": _reasoning,
    "reasoning_unavailable": _reasoning_unavailable,
    "tool": _tool,
    "image": _image,
    "artifact": _artifact,
    "start": _start,
    "end": _end,
    "complete": _complete,
    "skill_approval_request": _skill_approval_request,
    "skill_approval_result": _skill_approval_result,
    "quota": _quota,
    "error": _error,
}


# ============================================================
# Public API
# ============================================================

def classify(payload: Any) -> Optional[Chunk]:
    """
    Classify one parsed payload.

    Returns:
        The matching chunk, or None when the payload should be ignored.

    Raises:
        ProtocolError: The payload has a top-level ``error`` but no
            recognised ``type``.
    """
    if not isinstance(payload, dict):
        return None

    event_type = payload.get("type")
    handler = HANDLERS.get(event_type) if isinstance(event_type, str) else None
    if handler is not None:
        return handler(payload)

    error = payload.get("error")
    if error:
        raise ProtocolError(error if isinstance(error, str) else json.dumps(error, default=str))

    return None


def classify_line(raw: str, debug: bool = False) -> Optional[Chunk]:
    """Parse and classify one ``data:`` payload."""
    payload = try_parse(raw, debug=debug)
    if payload is None:
        return None
    return classify(payload)
