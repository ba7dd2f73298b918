"""
OpenAI-compatible chat completions endpoint backed by GigaChat.
"""
import logging
import time
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

import settings
from gateway import AuthenticationError, GigaChatClient, RequestError
from gateway.response_converter import result_to_openai
from stream_debug import maybe_create_stream_tracer
from ..dependencies import get_gateway_client
from ..handlers import create_openai_stream
from ..logging_utils import log_request
from ..models import OpenAIChatCompletionRequest

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/v1/chat/completions")
async def chat_completions(
    request: OpenAIChatCompletionRequest,
    raw_request: Request,
    client: GigaChatClient = Depends(get_gateway_client),
):
    """
    OpenAI-compatible chat completions endpoint.

    Authenticates with the cached GigaChat token and either returns a complete
    chat.completion object or streams chat.completion.chunk frames.
    """
    request_id = str(uuid.uuid4())[:8]
    start_time = time.time()

    logger.info(f"[{request_id}] ===== NEW CHAT COMPLETION REQUEST =====")
    log_request(request_id, request.model_dump(), raw_request.url.path, dict(raw_request.headers))

    try:
        chat_request = request.to_chat_request(default_model=client.model)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    tracer = None
    if chat_request.stream:
        tracer = maybe_create_stream_tracer(
            settings.STREAM_TRACE_ENABLED,
            request_id,
            "chat-completions",
            settings.STREAM_TRACE_DIR,
            settings.STREAM_TRACE_MAX_BYTES,
        )

    try:
        result = await client.send(chat_request, request_id=request_id, tracer=tracer)
    except AuthenticationError as e:
        logger.error(f"[{request_id}] Authentication failed: {e}")
        # The client has not taken the tracer over yet
        if tracer:
            tracer.log_error(f"authentication failed: {e}")
            tracer.close()
        raise HTTPException(status_code=401, detail=str(e))
    except RequestError as e:
        logger.error(f"[{request_id}] GigaChat rejected the request: {e}")
        status_code = e.status_code if e.status_code and e.status_code >= 400 else 502
        raise HTTPException(status_code=status_code, detail=str(e))

    if chat_request.stream:
        return StreamingResponse(
            create_openai_stream(result, chat_request.model, request_id),
            media_type="text/event-stream",
        )

    elapsed = time.time() - start_time
    logger.info(f"[{request_id}] Request completed in {elapsed:.2f}s")
    return result_to_openai(result, chat_request.model, f"chatcmpl-{request_id}", int(start_time))
