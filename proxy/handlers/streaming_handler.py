"""
Streaming response handler converting gateway events to OpenAI SSE chunks.
"""
import json
import logging
import time
from typing import Dict, Any, AsyncIterator, Optional

from gateway import Error, EventStream, Finish, TextDelta
from gateway.response_converter import to_openai_finish_reason

logger = logging.getLogger(__name__)


async def create_openai_stream(
    event_stream: EventStream,
    model: str,
    request_id: str,
) -> AsyncIterator[str]:
    """
    Convert a gateway event stream to OpenAI chat completion chunks.

    Args:
        event_stream: Live gateway events
        model: Model name for the chunks
        request_id: Request ID for logging

    Yields:
        OpenAI-formatted SSE chunks, always ending with ``data: [DONE]``
    """
    completion_id = f"chatcmpl-{request_id}"
    created = int(time.time())

    def emit(delta: Dict[str, Any], finish_reason: Optional[str] = None, usage: Optional[Dict[str, int]] = None) -> str:
        payload: Dict[str, Any] = {
            "id": completion_id,
            "object": "chat.completion.chunk",
            "created": created,
            "model": model,
            "choices": [
                {
                    "index": 0,
                    "delta": delta,
                    "finish_reason": finish_reason,
                }
            ],
        }
        if usage is not None:
            payload["usage"] = usage
        return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"

    # Leaving the block releases the upstream response, including on client disconnect
    async with event_stream:
        yield emit({"role": "assistant", "content": ""})

        async for event in event_stream:
            if isinstance(event, TextDelta):
                yield emit({"content": event.text})
            elif isinstance(event, Finish):
                logger.debug(f"[{request_id}] Stream finished: reason={event.reason.value} usage={event.usage.to_dict()}")
                yield emit({}, finish_reason=to_openai_finish_reason(event.reason), usage=event.usage.to_dict())
            elif isinstance(event, Error):
                logger.error(f"[{request_id}] Upstream stream failed: {event.detail}")
                error_payload = {"error": {"message": event.detail, "type": "upstream_error"}}
                yield f"data: {json.dumps(error_payload, ensure_ascii=False)}\n\n"

    yield "data: [DONE]\n\n"
