"""
Conversion of GigaChat completion responses into gateway results.
"""
import json
import logging
from typing import Any, Dict, Optional

from .exceptions import RequestError
from .types import ChatResult, FinishReason, Usage

logger = logging.getLogger(__name__)

_FINISH_REASON_MAPPING = {
    "stop": FinishReason.STOP,
    "length": FinishReason.LENGTH,
    "content-filter": FinishReason.CONTENT_FILTER,
    "content_filter": FinishReason.CONTENT_FILTER,
    "function_call": FinishReason.TOOL_CALLS,
    "tool_calls": FinishReason.TOOL_CALLS,
    "error": FinishReason.ERROR,
}


def map_finish_reason(finish_reason: Optional[str]) -> FinishReason:
    """Map a vendor finish_reason to FinishReason.

    Total: anything unrecognized (including None) maps to UNKNOWN.
    """
    if not isinstance(finish_reason, str):
        return FinishReason.UNKNOWN
    return _FINISH_REASON_MAPPING.get(finish_reason, FinishReason.UNKNOWN)


def convert_completion_response(data: Any) -> ChatResult:
    """
    Convert a non-streaming chat completion body into a ChatResult.

    Args:
        data: Decoded JSON body of the completion response

    Returns:
        ChatResult with text, mapped finish reason and usage

    Raises:
        RequestError: If the body has no usable choice
    """
    if not isinstance(data, dict):
        raise RequestError(None, "Malformed completion response: expected a JSON object", body=json.dumps(data)[:500])

    choices = data.get("choices") or []
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        raise RequestError(None, "Malformed completion response: no choices", body=json.dumps(data)[:500])

    choice = choices[0]
    message = choice.get("message") or {}
    if not isinstance(message, dict):
        raise RequestError(None, "Malformed completion response: message is not an object", body=json.dumps(data)[:500])
    text = message.get("content") or ""
    if not isinstance(text, str):
        raise RequestError(None, "Malformed completion response: content is not a string", body=json.dumps(data)[:500])

    try:
        usage = Usage.from_dict(data.get("usage"))
    except (TypeError, ValueError) as e:
        raise RequestError(None, f"Malformed completion response: {e}", body=json.dumps(data)[:500]) from e

    result = ChatResult(
        text=text,
        finish_reason=map_finish_reason(choice.get("finish_reason")),
        usage=usage,
    )
    logger.debug(
        f"Converted completion: {len(text)} chars, finish_reason={result.finish_reason.value}, "
        f"usage={result.usage.to_dict()}"
    )
    return result


def result_to_openai(result: ChatResult, model: str, completion_id: str, created: int) -> Dict[str, Any]:
    """Render a ChatResult as an OpenAI chat.completion object"""
    return {
        "id": completion_id,
        "object": "chat.completion",
        "created": created,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": result.text},
                "finish_reason": to_openai_finish_reason(result.finish_reason),
            }
        ],
        "usage": result.usage.to_dict(),
    }


def to_openai_finish_reason(reason: FinishReason) -> str:
    """Map FinishReason back to OpenAI's finish_reason vocabulary"""
    return {
        FinishReason.STOP: "stop",
        FinishReason.LENGTH: "length",
        FinishReason.CONTENT_FILTER: "content_filter",
        FinishReason.TOOL_CALLS: "tool_calls",
    }.get(reason, "stop")
