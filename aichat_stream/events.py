"""
aichat-stream - Stream Chunk Models

Typed events produced from the chat stream. Each class corresponds to one
``type`` value on the wire; ``Chunk`` is the closed union of all of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None."""
    return {k: v for k, v in data.items() if v is not None}


# ============================================================
# Generation Events
# ============================================================

@dataclass
class ContentDelta:
    """A piece of assistant answer text."""
    type: ClassVar[str] = "content"
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "content": self.content}


@dataclass
class UsageChunk:
    """Token usage statistics (OpenAI-compatible field names)."""
    type: ClassVar[str] = "usage"
    usage: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "usage": self.usage}


@dataclass
class ReasoningChunk:
    """
    Reasoning ("thinking") progress.

    Exactly one of three shapes is populated:
    - terminal: ``done`` is True, ``duration`` optional
    - keepalive: ``keepalive`` is True, ``idle_ms`` optional
    - incremental: ``content`` holds the new reasoning text
    """
    type: ClassVar[str] = "reasoning"
    content: Optional[str] = None
    done: bool = False
    duration: Optional[float] = None
    keepalive: bool = False
    idle_ms: Optional[float] = None
    meta: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.type}
        if self.done:
            result["done"] = True
            if self.duration is not None:
                result["duration"] = self.duration
        elif self.keepalive:
            result["keepalive"] = True
            if self.idle_ms is not None:
                result["idleMs"] = self.idle_ms
        elif self.content is not None:
            result["content"] = self.content
        if self.meta is not None:
            result["meta"] = self.meta
        return result


@dataclass
class ReasoningUnavailable:
    """The selected model cannot produce reasoning for this request."""
    type: ClassVar[str] = "reasoning_unavailable"
    code: Optional[str] = None
    reason: Optional[str] = None
    suggestion: Optional[str] = None
    protocol: Optional[str] = None
    decision: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "type": self.type,
            "code": self.code,
            "reason": self.reason,
            "suggestion": self.suggestion,
            "protocol": self.protocol,
            "decision": self.decision,
        })


# ============================================================
# Tool & Media Events
# ============================================================

@dataclass
class ToolEvent:
    """Progress of a server-side tool invocation (web search, python, ...)."""
    type: ClassVar[str] = "tool"
    tool: Optional[str] = None
    stage: Optional[str] = None
    id: Optional[str] = None
    query: Optional[str] = None
    hits: Optional[List[Any]] = None
    error: Optional[str] = None
    summary: Optional[str] = None
    details: Optional[Any] = None
    meta: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "type": self.type,
            "tool": self.tool,
            "stage": self.stage,
            "id": self.id,
            "query": self.query,
            "hits": self.hits,
            "error": self.error,
            "summary": self.summary,
            "details": self.details,
            "meta": self.meta,
        })


@dataclass
class ImageEvent:
    """Images produced by an image generation model."""
    type: ClassVar[str] = "image"
    generated_images: Optional[List[Any]] = None
    message_id: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "type": self.type,
            "generatedImages": self.generated_images,
            "messageId": self.message_id,
        })


@dataclass
class ArtifactEvent:
    """Files produced by a tool run (e.g. the python runner)."""
    type: ClassVar[str] = "artifact"
    artifacts: List[Any] = field(default_factory=list)
    message_id: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "type": self.type,
            "artifacts": self.artifacts,
            "messageId": self.message_id,
        })


# ============================================================
# Lifecycle Events
# ============================================================

@dataclass
class StreamStart:
    """Server acknowledged the request and allocated message ids."""
    type: ClassVar[str] = "start"
    message_id: Optional[int] = None
    assistant_message_id: Optional[int] = None
    assistant_client_message_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "messageId": self.message_id,
            "assistantMessageId": self.assistant_message_id,
            "assistantClientMessageId": self.assistant_client_message_id,
        }


@dataclass
class StreamEnd:
    """The model finished producing output (persistence may still follow)."""
    type: ClassVar[str] = "end"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}


@dataclass
class StreamComplete:
    """Terminal marker: the generation finished successfully."""
    type: ClassVar[str] = "complete"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}


# ============================================================
# Skill Approval Events
# ============================================================

@dataclass
class SkillApprovalRequest:
    """A skill tool call is waiting for user approval."""
    type: ClassVar[str] = "skill_approval_request"
    request_id: Optional[Any] = None
    skill_id: Optional[Any] = None
    skill_slug: Optional[str] = None
    skill_version_id: Optional[Any] = None
    tool: Optional[str] = None
    tool_call_id: Optional[str] = None
    reason: Optional[str] = None
    expires_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "type": self.type,
            "requestId": self.request_id,
            "skillId": self.skill_id,
            "skillSlug": self.skill_slug,
            "skillVersionId": self.skill_version_id,
            "tool": self.tool,
            "toolCallId": self.tool_call_id,
            "reason": self.reason,
            "expiresAt": self.expires_at,
        })


@dataclass
class SkillApprovalResult:
    """Outcome of a skill approval request."""
    type: ClassVar[str] = "skill_approval_result"
    request_id: Optional[Any] = None
    skill_id: Optional[Any] = None
    skill_slug: Optional[str] = None
    tool: Optional[str] = None
    tool_call_id: Optional[str] = None
    decision: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "type": self.type,
            "requestId": self.request_id,
            "skillId": self.skill_id,
            "skillSlug": self.skill_slug,
            "tool": self.tool,
            "toolCallId": self.tool_call_id,
            "decision": self.decision,
        })


# ============================================================
# Account & Error Events
# ============================================================

@dataclass
class QuotaChunk:
    """Updated quota snapshot for the current actor."""
    type: ClassVar[str] = "quota"
    quota: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "quota": self.quota}


@dataclass
class ErrorChunk:
    """An error reported in-band by the server."""
    type: ClassVar[str] = "error"
    error: str
    error_type: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "type": self.type,
            "error": self.error,
            "errorType": self.error_type,
            "suggestion": self.suggestion,
        })


Chunk = Union[
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
]
