"""
Translation of vendor-neutral chat requests into the GigaChat wire format.
"""
from typing import Any, Dict, List

from .types import ChatRequest, MessageContent

# Generic sampling parameter -> GigaChat field name
SAMPLING_FIELDS = (
    ("temperature", "temperature"),
    ("max_tokens", "max_tokens"),
    ("top_p", "top_p"),
    ("repetition_penalty", "repetition_penalty"),
)


def flatten_content(content: MessageContent) -> str:
    """Flatten message content to plain text.

    Text parts are concatenated in order; every other part contributes
    an empty string.
    """
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""

    text_parts: List[str] = []
    for part in content:
        if isinstance(part, dict) and part.get("type") == "text":
            text_parts.append(part.get("text") or "")
    return "".join(text_parts)


def translate_request(request: ChatRequest) -> Dict[str, Any]:
    """
    Build the /chat/completions request body for a ChatRequest.

    Args:
        request: Vendor-neutral chat request

    Returns:
        GigaChat request body; unset sampling parameters are omitted
    """
    body: Dict[str, Any] = {
        "model": request.model,
        "messages": [
            {"role": message.role, "content": flatten_content(message.content)}
            for message in request.messages
        ],
        "stream": request.stream,
    }

    for attr, wire_name in SAMPLING_FIELDS:
        value = getattr(request, attr)
        if value is not None:
            body[wire_name] = value

    return body
