"""
aichat-stream - Error Classes

Error taxonomy for the chat stream consumer.

Pre-stream failures (401, 429, non-2xx) are raised before any chunk is
yielded. Mid-stream failures (protocol errors, truncated bodies) are raised
out of the consuming generator; chunks yielded before the raise are the only
validated output.
"""

from typing import Optional, Dict, Any


class ChatStreamError(Exception):
    """
    Base exception for aichat-stream.

    All library errors inherit from this class.

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        status_code: HTTP status code if applicable
        retryable: Whether the request can be retried
        details: Additional error details
    """

    def __init__(
        self,
        message: str,
        code: str = "unknown",
        status_code: Optional[int] = None,
        retryable: bool = False,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.retryable = retryable
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"status_code={self.status_code})"
        )


class UnauthorizedError(ChatStreamError):
    """
    The session is not authenticated (HTTP 401).

    Never retried. The client invokes its ``on_unauthorized`` hook before
    raising so the auth layer can clear the session and redirect to login.
    """

    def __init__(self, message: str = "Unauthorized", **kwargs):
        kwargs.pop("retryable", None)  # Remove if passed, we force it
        kwargs.pop("code", None)
        super().__init__(
            message=message,
            code="unauthorized",
            status_code=kwargs.pop("status_code", 401),
            retryable=False,
            **kwargs
        )


class QuotaExceededError(ChatStreamError):
    """
    Usage quota exhausted (HTTP 429).

    Attributes:
        payload: Parsed JSON body of the 429 response, or None
    """

    def __init__(
        self,
        message: str = "Quota exceeded",
        payload: Optional[Any] = None,
        **kwargs
    ):
        kwargs.pop("retryable", None)  # Remove if passed, we force it
        kwargs.pop("code", None)
        super().__init__(
            message=message,
            code="quota_exceeded",
            status_code=kwargs.pop("status_code", 429),
            retryable=False,
            **kwargs
        )
        self.payload = payload


class HttpError(ChatStreamError):
    """
    Non-2xx response that is neither 401 nor 429.

    Also raised for a 5xx that persisted through the single retry.

    Attributes:
        payload: Parsed JSON body, or None when the body was not JSON
    """

    def __init__(
        self,
        status_code: int,
        payload: Optional[Any] = None,
        message: Optional[str] = None,
        **kwargs
    ):
        kwargs.pop("code", None)
        super().__init__(
            message=message or f"HTTP error {status_code}",
            code="http_error",
            status_code=status_code,
            retryable=kwargs.pop("retryable", False),
            **kwargs
        )
        self.payload = payload


class ProtocolError(ChatStreamError):
    """
    The server sent an error payload the stream protocol does not describe.

    Raised mid-stream for a JSON object carrying a top-level ``error`` with
    no recognised ``type``.
    """

    def __init__(self, message: str = "Stream protocol error", **kwargs):
        kwargs.pop("retryable", None)
        kwargs.pop("code", None)
        super().__init__(
            message=message,
            code="protocol_error",
            retryable=False,
            **kwargs
        )


class IncompleteStreamError(ChatStreamError):
    """
    The response body ended without a completion marker.

    Neither ``[DONE]`` nor a ``complete`` event was seen, so the generation
    cannot be assumed to have finished.

    Attributes:
        stream_key: Key of the stream that was cut off
    """

    CODE = "STREAM_INCOMPLETE"

    def __init__(
        self,
        stream_key: str,
        message: str = "Stream closed before completion",
        **kwargs
    ):
        kwargs.pop("retryable", None)
        kwargs.pop("code", None)
        super().__init__(
            message=message,
            code=self.CODE,
            retryable=False,  # Can't retry mid-stream
            **kwargs
        )
        self.stream_key = stream_key


class StreamAbortedError(ChatStreamError):
    """
    The caller cancelled the stream.

    This is an expected outcome, not a failure: it stops iteration and is
    never reported as an incomplete stream.
    """

    def __init__(
        self,
        message: str = "Stream aborted",
        stream_key: Optional[str] = None,
        **kwargs
    ):
        kwargs.pop("retryable", None)
        kwargs.pop("code", None)
        super().__init__(
            message=message,
            code="aborted",
            retryable=False,
            **kwargs
        )
        self.stream_key = stream_key


class TimeoutError(ChatStreamError):
    """Request timed out before the stream opened."""

    def __init__(self, message: str = "Request timed out", **kwargs):
        kwargs.pop("retryable", None)
        kwargs.pop("code", None)
        super().__init__(
            message=message,
            code="timeout",
            status_code=kwargs.pop("status_code", None),
            retryable=True,
            **kwargs
        )


class ConnectionError(ChatStreamError):
    """
    Failed to reach the chat server.

    This error occurs when:
    - Network is unavailable
    - DNS resolution fails
    - Connection is refused or reset
    """

    def __init__(self, message: str = "Failed to connect to server", **kwargs):
        kwargs.pop("retryable", None)
        kwargs.pop("code", None)
        super().__init__(
            message=message,
            code="connection_error",
            status_code=kwargs.pop("status_code", None),
            retryable=True,
            **kwargs
        )


def is_retryable_error(error: Any) -> bool:
    """
    Check if an error is retryable.

    Transport failures are retryable by the caller. Quota, auth, protocol
    and truncation errors are not.
    """
    if isinstance(error, ChatStreamError):
        return error.retryable

    return False


def user_message(error: BaseException) -> str:
    """Map an error to the text shown to the end user."""
    if isinstance(error, QuotaExceededError):
        return "Usage quota reached. Please wait until it resets."
    if isinstance(error, UnauthorizedError):
        return "Your session has expired. Please sign in again."
    if isinstance(error, IncompleteStreamError):
        return "Connection lost before the reply finished. Please retry."
    if isinstance(error, StreamAbortedError):
        return "Generation stopped."
    message = getattr(error, "message", None) or str(error)
    return f"Request failed: {message}" if message else "Request failed"
