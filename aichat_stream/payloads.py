"""
aichat-stream - Request Payloads

Wire shape of the chat stream request and the server-side cancel request.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Union


@dataclass
class ImageAttachment:
    """An inline image sent with the user message."""
    data: str  # base64, no data: URL prefix
    mime: str

    def to_dict(self) -> Dict[str, str]:
        return {"data": self.data, "mime": self.mime}


ImageInput = Union[ImageAttachment, Mapping[str, str]]

# Options handled explicitly below rather than passed through.
_SPECIAL_OPTIONS = {
    "streamKey",
    "customBody",
    "customHeaders",
    "replyToMessageId",
    "replyToClientMessageId",
}


def _image_to_dict(image: ImageInput) -> Dict[str, str]:
    if isinstance(image, ImageAttachment):
        return image.to_dict()
    return {"data": image["data"], "mime": image["mime"]}


def build_stream_payload(
    session_id: Any,
    content: str,
    images: Optional[Sequence[ImageInput]] = None,
    options: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build the JSON body of ``POST /chat/stream``.

    Feature options (``reasoningEnabled``, ``clientMessageId``,
    ``knowledgeBaseIds`` ...) are passed through unchanged, except:
    - ``customBody`` / ``customHeaders`` are sent as ``custom_body`` /
      ``custom_headers``
    - ``replyToMessageId`` is sent only when it is an int
    - ``replyToClientMessageId`` is sent trimmed, only when non-blank
    - ``streamKey`` is client-side only and never sent
    - options set to None are omitted

    Example:
        >>> build_stream_payload(7, "hi", options={"reasoningEnabled": True})
        {'sessionId': 7, 'content': 'hi', 'reasoningEnabled': True}
    """
    options = dict(options or {})

    payload: Dict[str, Any] = {"sessionId": session_id, "content": content}
    if images is not None:
        payload["images"] = [_image_to_dict(image) for image in images]

    for key, value in options.items():
        if key in _SPECIAL_OPTIONS or value is None:
            continue
        payload[key] = value

    custom_body = options.get("customBody")
    if custom_body is not None:
        payload["custom_body"] = custom_body

    custom_headers = options.get("customHeaders")
    if isinstance(custom_headers, list):
        payload["custom_headers"] = custom_headers

    reply_to = options.get("replyToMessageId")
    if isinstance(reply_to, int) and not isinstance(reply_to, bool):
        payload["replyToMessageId"] = reply_to

    reply_to_client = options.get("replyToClientMessageId")
    if isinstance(reply_to_client, str) and reply_to_client.strip():
        payload["replyToClientMessageId"] = reply_to_client.strip()

    return payload


def _numeric_message_id(value: Any) -> Optional[Union[int, float]]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return int(number) if number.is_integer() else number
    return None


def build_cancel_payload(
    session_id: Any,
    client_message_id: Optional[str] = None,
    message_id: Optional[Union[int, str]] = None,
) -> Optional[Dict[str, Any]]:
    """
    Build the body of ``POST /chat/stream/cancel``.

    Returns None when there is nothing to identify the generation by:
    neither a client message id nor a numeric message id.
    """
    payload: Dict[str, Any] = {"sessionId": session_id}
    if client_message_id:
        payload["clientMessageId"] = client_message_id

    numeric = _numeric_message_id(message_id)
    if numeric is not None:
        payload["messageId"] = numeric

    if "clientMessageId" not in payload and "messageId" not in payload:
        return None
    return payload

