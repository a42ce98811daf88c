"""
aichat-stream - Retry Policy

Pre-stream retry rules for the chat stream request.

Only the opening of the stream is ever retried, and only once. Once the
response body has started, a failure is reported to the caller as-is:
replaying the request would duplicate output the user has already seen.
"""

from dataclasses import dataclass

# Retries allowed after the first attempt. Not configurable.
MAX_RETRIES = 1

DEFAULT_BACKOFF = 2.0


@dataclass
class RetryPolicy:
    """
    Configuration for the pre-stream retry.

    Attributes:
        backoff: Seconds to wait before the single 5xx retry
    """
    backoff: float = DEFAULT_BACKOFF

    def __post_init__(self) -> None:
        if self.backoff < 0:
            raise ValueError(f"backoff must be >= 0, got {self.backoff}")

    def should_retry(self, status_code: int, attempt: int) -> bool:
        """A server error on the first attempt is retried; nothing else is."""
        return is_server_error(status_code) and attempt < MAX_RETRIES

    def delay_for(self, attempt: int) -> float:
        return self.backoff


def is_server_error(status_code: int) -> bool:
    return 500 <= status_code <= 599
