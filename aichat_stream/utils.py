"""
aichat-stream - Utility Functions

Convenience functions for quick usage without creating a client.
"""

from typing import Any, AsyncIterator, Mapping, Optional, Sequence

from .client import ChatStreamClient
from .events import Chunk
from .payloads import ImageInput


# Default client instance (created lazily)
_default_client: Optional[ChatStreamClient] = None


def _get_default_client() -> ChatStreamClient:
    """Get or create the default client."""
    global _default_client
    if _default_client is None:
        _default_client = ChatStreamClient()
    return _default_client


def set_default_client(client: Optional[ChatStreamClient]) -> None:
    """
    Replace the client used by the module-level functions.

    Example:
        >>> import aichat_stream
        >>> aichat_stream.set_default_client(
        ...     aichat_stream.ChatStreamClient(base_url="https://chat.example.com/api")
        ... )
    """
    global _default_client
    _default_client = client


def stream_chat(
    session_id: Any,
    content: str,
    images: Optional[Sequence[ImageInput]] = None,
    options: Optional[Mapping[str, Any]] = None,
    stream_key: Optional[str] = None,
) -> AsyncIterator[Chunk]:
    """
    Stream a reply using the default client.

    Example:
        >>> async for chunk in aichat_stream.stream_chat(42, "Hello!"):
        ...     print(chunk)
    """
    return _get_default_client().stream_chat(
        session_id, content, images=images, options=options, stream_key=stream_key
    )


def cancel_stream(stream_key: Optional[str] = None) -> int:
    """Cancel one stream of the default client, or all of them."""
    return _get_default_client().cancel_stream(stream_key)


async def cancel_agent_stream(
    session_id: Any,
    client_message_id: Optional[str] = None,
    message_id: Optional[Any] = None,
) -> bool:
    """Ask the server to stop generating, using the default client."""
    return await _get_default_client().cancel_agent_stream(
        session_id, client_message_id=client_message_id, message_id=message_id
    )
