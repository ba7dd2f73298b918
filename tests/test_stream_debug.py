"""Tests for the stream tracer."""

import pytest

from conftest import delta, sse
from gateway import TextDelta, parse_event_stream
from stream_debug import TRUNCATION_MARKER, StreamTracer, maybe_create_stream_tracer


def test_disabled_tracer_is_none(tmp_path):
    assert maybe_create_stream_tracer(False, "req", "/v1/chat/completions", str(tmp_path), None) is None


def test_trace_file_name_uses_sanitized_route(tmp_path):
    tracer = StreamTracer("abc123", "/v1/chat/completions", str(tmp_path), None)
    tracer.close()

    assert tracer.path.parent == tmp_path
    assert tracer.path.name.endswith("_v1-chat-completions_abc123.log")


@pytest.mark.asyncio
async def test_parser_writes_lines_and_events(tmp_path):
    tracer = StreamTracer("req", "chat", str(tmp_path), None)

    async def chunks():
        yield sse(delta("Привет"), "[DONE]")

    events = [event async for event in parse_event_stream(chunks(), tracer=tracer)]
    tracer.close()

    content = tracer.path.read_text(encoding="utf-8")
    assert events[0] == TextDelta(text="Привет")
    assert "[GIGACHAT]" in content
    assert "data: [DONE]" in content
    assert "[EVENT]" in content
    assert tracer.events == len(events)
    assert "trace closed" in content


def test_output_is_capped(tmp_path):
    tracer = StreamTracer("req", "chat", str(tmp_path), max_bytes=300)

    for _ in range(20):
        tracer.log_source_line("data: " + "x" * 50)
    tracer.close()

    content = tracer.path.read_text(encoding="utf-8")
    assert tracer.truncated
    assert content.count(TRUNCATION_MARKER) == 1
    assert "trace closed" not in content
    assert len(content.encode("utf-8")) <= 300 + len(TRUNCATION_MARKER) + 1


def test_close_is_idempotent(tmp_path):
    tracer = StreamTracer("req", "chat", str(tmp_path), None)

    tracer.close()
    tracer.close()
    tracer.log_note("ignored")

    assert "ignored" not in tracer.path.read_text(encoding="utf-8")
