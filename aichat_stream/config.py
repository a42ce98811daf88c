"""
aichat-stream - Client Configuration

Settings are passed explicitly or read from the environment:

    AICHAT_BASE_URL        API base URL (default http://localhost:8001/api)
    AICHAT_TIMEOUT         Connect/write timeout in seconds (default 30)
    AICHAT_RETRY_BACKOFF   Seconds to wait before the 5xx retry (default 2)
    AICHAT_STREAM_DEBUG    Log malformed stream frames (1/true/yes/on)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from .retry import RetryPolicy

DEFAULT_BASE_URL = "http://localhost:8001/api"


def _is_truthy(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.lower() in ("1", "true", "yes", "on")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass
class ClientConfig:
    """
    Configuration for ``ChatStreamClient``.

    Attributes:
        base_url: API base URL; the stream endpoint is ``{base_url}/chat/stream``
        timeout: Connect/write/pool timeout in seconds. Body reads never time
            out; an idle stream simply waits for the next frame.
        retry: Pre-stream retry policy
        debug: Log malformed frames instead of dropping them silently
        headers: Extra headers sent with every request
        cookies: Session cookies issued by the auth layer
    """
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    debug: bool = False
    headers: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")

    @classmethod
    def from_env(cls, **overrides) -> ClientConfig:
        """Build a config from ``AICHAT_*`` variables; keyword arguments win."""
        values = {
            "base_url": os.getenv("AICHAT_BASE_URL") or DEFAULT_BASE_URL,
            "timeout": _float_env("AICHAT_TIMEOUT", 30.0),
            "retry": RetryPolicy(backoff=_float_env("AICHAT_RETRY_BACKOFF", 2.0)),
            "debug": _is_truthy(os.getenv("AICHAT_STREAM_DEBUG")),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def http_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.timeout, read=None)
