"""
Server-Sent Events parsing for GigaChat streaming responses.

The gateway streams ``data: <json>`` lines terminated by ``data: [DONE]``.
parse_event_stream turns the raw body into a lazy sequence of StreamEvent
objects that always ends with exactly one Finish or Error event.
"""
import codecs
import json
import logging
from typing import AsyncIterable, AsyncIterator, Awaitable, Callable, List, Optional, Tuple, Union, TYPE_CHECKING

import httpx

from .exceptions import StreamParseError, TransportError
from .response_converter import map_finish_reason
from .types import ChatResult, Error, Finish, FinishReason, StreamEvent, TextDelta, Usage, UsageUpdate

if TYPE_CHECKING:
    from stream_debug import StreamTracer

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

# Failures while reading the body that end the stream with an Error event
STREAM_READ_ERRORS = (httpx.HTTPError, httpx.StreamError, OSError)


class SSELineReader:
    """Incremental splitter turning raw body chunks into complete lines."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: Union[bytes, str]) -> List[str]:
        """Consume a chunk and return the lines it completed."""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        if not chunk:
            return []

        self._buffer += chunk
        *lines, self._buffer = self._buffer.split("\n")
        return [line[:-1] if line.endswith("\r") else line for line in lines]

    def flush(self) -> List[str]:
        """Return whatever is left once the body has ended."""
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        if tail.endswith("\r"):
            tail = tail[:-1]
        return [tail] if tail else []


class _StreamState:
    """Per-stream running totals, owned by a single parse_event_stream call"""

    def __init__(self) -> None:
        self.usage = Usage()
        self.finish_reason: Optional[str] = None
        self.done = False


def _process_line(line: str, state: _StreamState, request_id: str) -> List[StreamEvent]:
    """Turn one SSE line into zero or more events, updating state."""
    if not line.startswith(DATA_PREFIX):
        # Comments, event names, blank keep-alives
        return []

    payload = line[len(DATA_PREFIX):]
    if payload.startswith(" "):
        payload = payload[1:]

    if payload.strip() == DONE_SENTINEL:
        state.done = True
        return [Finish(reason=FinishReason.STOP, usage=state.usage)]

    try:
        record = json.loads(payload)
    except json.JSONDecodeError as e:
        error = StreamParseError(payload, str(e))
        logger.warning(f"[{request_id}] Skipping frame: {error}")
        return []

    if not isinstance(record, dict):
        error = StreamParseError(payload, "expected a JSON object")
        logger.warning(f"[{request_id}] Skipping frame: {error}")
        return []

    events: List[StreamEvent] = []
    try:
        text, finish_reason, usage = _read_record(record)
    except (KeyError, TypeError, ValueError) as e:
        error = StreamParseError(payload, f"unexpected record shape: {e}")
        logger.warning(f"[{request_id}] Skipping frame: {error}")
        return []

    if text:
        events.append(TextDelta(text=text))

    if finish_reason:
        state.finish_reason = finish_reason
        logger.debug(f"[{request_id}] Payload finish_reason: {state.finish_reason}")

    if usage is not None:
        state.usage = usage
        events.append(UsageUpdate(usage=usage))

    return events


def _read_record(record: dict) -> Tuple[str, Optional[str], Optional[Usage]]:
    """Extract (text, finish_reason, usage) from one chunk record.

    Raises:
        KeyError, TypeError, ValueError: If the record has the wrong shape
    """
    choices = record.get("choices") or []
    if not isinstance(choices, list):
        raise TypeError(f"choices must be a list, got {type(choices).__name__}")

    choice = choices[0] if choices else {}
    if not isinstance(choice, dict):
        raise TypeError(f"choice must be an object, got {type(choice).__name__}")

    delta = choice.get("delta") or {}
    if not isinstance(delta, dict):
        raise TypeError(f"delta must be an object, got {type(delta).__name__}")

    text = delta.get("content") or ""
    if not isinstance(text, str):
        raise TypeError(f"content must be a string, got {type(text).__name__}")

    finish_reason = choice.get("finish_reason")
    if finish_reason is not None and not isinstance(finish_reason, str):
        raise TypeError(f"finish_reason must be a string, got {type(finish_reason).__name__}")

    usage_data = record.get("usage")
    usage = Usage.from_dict(usage_data) if usage_data is not None else None
    return text, finish_reason, usage


async def parse_event_stream(
    chunks: AsyncIterable[Union[bytes, str]],
    request_id: str = "-",
    tracer: Optional["StreamTracer"] = None,
) -> AsyncIterator[StreamEvent]:
    """
    Parse a GigaChat SSE body into stream events.

    Args:
        chunks: Raw body chunks (bytes or already-decoded text)
        request_id: Request ID for logging
        tracer: Optional stream tracer for debugging

    Yields:
        TextDelta and UsageUpdate events in source order, then exactly one
        Finish or Error event
    """
    reader = SSELineReader()
    state = _StreamState()
    iterator = chunks.__aiter__()

    def emit(event: StreamEvent) -> StreamEvent:
        if tracer:
            tracer.log_event(event)
        return event

    while True:
        try:
            chunk = await iterator.__anext__()
        except StopAsyncIteration:
            break
        except STREAM_READ_ERRORS as e:
            error = TransportError(f"Stream read failed: {type(e).__name__}: {e}")
            logger.error(f"[{request_id}] {error}")
            if tracer:
                tracer.log_error(str(error))
            yield emit(Error(detail=error.detail))
            return

        for line in reader.feed(chunk):
            if tracer:
                tracer.log_source_line(line)
            for event in _process_line(line, state, request_id):
                yield emit(event)
            if state.done:
                logger.debug(f"[{request_id}] Stream finished with sentinel, usage={state.usage.to_dict()}")
                return

    for line in reader.flush():
        if tracer:
            tracer.log_source_line(line)
        for event in _process_line(line, state, request_id):
            yield emit(event)
        if state.done:
            return

    # Body ended cleanly without the sentinel
    reason = map_finish_reason(state.finish_reason)
    logger.warning(f"[{request_id}] Stream ended without {DONE_SENTINEL}, finishing with reason={reason.value}")
    yield emit(Finish(reason=reason, usage=state.usage))


class EventStream:
    """Live event sequence bound to the HTTP response that feeds it.

    The response is released exactly once on every exit path: exhaustion,
    early abandonment via aclose() or ``async with``, and errors raised
    while iterating.

    Breaking out of a bare ``async for`` does not release anything: the
    response stays open until the stream is garbage collected. Consume it
    inside ``async with stream:`` or call ``aclose()`` when stopping early.
    """

    def __init__(
        self,
        events: AsyncIterator[StreamEvent],
        on_close: Optional[Callable[[], Awaitable[None]]] = None,
        request_id: str = "-",
    ):
        self._events = events
        self._on_close = on_close
        self._closed = False
        self.request_id = request_id

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "EventStream":
        return self

    async def __anext__(self) -> StreamEvent:
        if self._closed:
            raise StopAsyncIteration
        try:
            return await self._events.__anext__()
        except BaseException:
            await self.aclose()
            raise

    async def aclose(self) -> None:
        """Stop the stream and release the underlying response."""
        if self._closed:
            return
        self._closed = True
        try:
            close_events = getattr(self._events, "aclose", None)
            if close_events is not None:
                await close_events()
        finally:
            if self._on_close is not None:
                await self._on_close()

    async def __aenter__(self) -> "EventStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def collect(self) -> ChatResult:
        """Drain the stream into a single ChatResult.

        Raises:
            TransportError: If the stream ended with an Error event
        """
        text_parts: List[str] = []
        async with self:
            async for event in self:
                if isinstance(event, TextDelta):
                    text_parts.append(event.text)
                elif isinstance(event, Finish):
                    return ChatResult(text="".join(text_parts), finish_reason=event.reason, usage=event.usage)
                elif isinstance(event, Error):
                    raise TransportError(event.detail)
        # Unreachable for parser-backed streams, which always finish
        return ChatResult(text="".join(text_parts), finish_reason=FinishReason.UNKNOWN)
