"""Tests for the GigaChat gateway client."""

import json

import httpx
import pytest

from conftest import API_URL, CREDENTIALS, RecordingStream, delta, sse
from gateway import (
    AuthenticationError,
    ChatRequest,
    ChatResult,
    Error,
    EventStream,
    Finish,
    FinishReason,
    GigaChatClient,
    Message,
    RequestError,
    TextDelta,
    Usage,
)


def make_request(stream: bool = False, **kwargs) -> ChatRequest:
    return ChatRequest(
        model="GigaChat",
        messages=[Message(role="user", content="Привет")],
        stream=stream,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_non_streaming_end_to_end(gateway_client, gigachat):
    gigachat.chat_response = httpx.Response(
        200,
        json={
            "choices": [{"message": {"content": "hi"}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 5, "completion_tokens": 1},
        },
    )

    result = await gateway_client.send(make_request())

    assert result == ChatResult(text="hi", finish_reason=FinishReason.STOP, usage=Usage(prompt_tokens=5, completion_tokens=1))


@pytest.mark.asyncio
async def test_chat_request_is_bearer_authenticated(gateway_client, gigachat):
    gigachat.chat_response = httpx.Response(200, json={"choices": [{"message": {"content": "ok"}, "finish_reason": "stop"}]})

    await gateway_client.send(make_request(temperature=0.2, max_tokens=10))

    request = gigachat.chat_requests[0]
    assert str(request.url) == f"{API_URL}/chat/completions"
    assert request.headers["Authorization"] == "Bearer token-1"
    assert json.loads(request.content) == {
        "model": "GigaChat",
        "messages": [{"role": "user", "content": "Привет"}],
        "stream": False,
        "temperature": 0.2,
        "max_tokens": 10,
    }


@pytest.mark.asyncio
async def test_cached_token_reused_across_calls(gateway_client, gigachat):
    gigachat.chat_response = lambda request: httpx.Response(
        200, json={"choices": [{"message": {"content": "ok"}, "finish_reason": "stop"}]}
    )

    await gateway_client.send(make_request())
    await gateway_client.send(make_request())

    assert len(gigachat.auth_requests) == 1
    assert len(gigachat.chat_requests) == 2


@pytest.mark.asyncio
async def test_missing_usage_defaults_to_zero(gateway_client, gigachat):
    gigachat.chat_response = httpx.Response(200, json={"choices": [{"message": {"content": "x"}, "finish_reason": "function_call"}]})

    result = await gateway_client.send(make_request())

    assert result.usage == Usage()
    assert result.finish_reason is FinishReason.TOOL_CALLS


@pytest.mark.asyncio
async def test_authentication_error_skips_chat_call(gateway_client, gigachat):
    gigachat.auth_status = 401

    with pytest.raises(AuthenticationError):
        await gateway_client.send(make_request())

    assert gigachat.chat_requests == []


@pytest.mark.asyncio
async def test_non_streaming_rejection_raises_request_error(gateway_client, gigachat):
    gigachat.chat_response = httpx.Response(500, json={"message": "internal"})

    with pytest.raises(RequestError) as exc_info:
        await gateway_client.send(make_request())

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail == "Internal Server Error"
    assert "internal" in exc_info.value.body


@pytest.mark.asyncio
async def test_malformed_body_raises_request_error(gateway_client, gigachat):
    gigachat.chat_response = httpx.Response(200, json={"choices": []})

    with pytest.raises(RequestError, match="no choices"):
        await gateway_client.send(make_request())


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"choices": [{"message": "hi", "finish_reason": "stop"}]},
        {"choices": [{"message": {"content": ["hi"]}, "finish_reason": "stop"}]},
        {"choices": {"message": {"content": "hi"}}},
        {"choices": [{"message": {"content": "hi"}}], "usage": "lots"},
        {"choices": [{"message": {"content": "hi"}}], "usage": {"prompt_tokens": "n/a"}},
    ],
)
async def test_wrongly_shaped_body_raises_request_error(gateway_client, gigachat, body):
    gigachat.chat_response = httpx.Response(200, json=body)

    with pytest.raises(RequestError, match="Malformed completion response"):
        await gateway_client.send(make_request())


@pytest.mark.asyncio
async def test_non_streaming_call_uses_request_timeout(http_client, token_cache, gigachat):
    gigachat.chat_response = httpx.Response(200, json={"choices": [{"message": {"content": "ok"}, "finish_reason": "stop"}]})
    client = GigaChatClient(
        base_url=API_URL,
        credentials=CREDENTIALS,
        token_cache=token_cache,
        http_client=http_client,
        request_timeout=httpx.Timeout(30.0, read=120.0),
    )

    await client.send(make_request())

    timeout = gigachat.chat_requests[0].extensions["timeout"]
    assert timeout["read"] == 120.0
    assert timeout["connect"] == 30.0


@pytest.mark.asyncio
async def test_streaming_call_keeps_client_timeout(http_client, token_cache, gigachat):
    gigachat.chat_response = httpx.Response(200, stream=RecordingStream([sse("[DONE]")]))
    client = GigaChatClient(
        base_url=API_URL,
        credentials=CREDENTIALS,
        token_cache=token_cache,
        http_client=http_client,
        request_timeout=httpx.Timeout(30.0, read=120.0),
    )

    async with await client.stream(make_request()) as events:
        [event async for event in events]

    assert gigachat.chat_requests[0].extensions["timeout"]["read"] == http_client.timeout.read


@pytest.mark.asyncio
async def test_rejected_token_is_invalidated(gateway_client, gigachat, token_cache):
    gigachat.chat_response = httpx.Response(401, json={"message": "Token has expired"})

    with pytest.raises(RequestError):
        await gateway_client.send(make_request())

    assert token_cache.credential is None


@pytest.mark.asyncio
async def test_streaming_returns_live_events(gateway_client, gigachat):
    body = RecordingStream([
        sse(delta("При")),
        sse(delta("вет", usage={"prompt_tokens": 3, "completion_tokens": 2})),
        sse("[DONE]"),
    ])
    gigachat.chat_response = httpx.Response(200, stream=body, headers={"Content-Type": "text/event-stream"})

    stream = await gateway_client.send(make_request(stream=True))

    assert isinstance(stream, EventStream)
    # Nothing is read until the caller iterates
    assert body.yielded == 0
    events = [event async for event in stream]
    assert [event for event in events if isinstance(event, TextDelta)] == [TextDelta("При"), TextDelta("вет")]
    assert events[-1] == Finish(reason=FinishReason.STOP, usage=Usage(3, 2))
    assert body.closed

    request = gigachat.chat_requests[0]
    assert request.headers["Accept"] == "text/event-stream"
    assert json.loads(request.content)["stream"] is True


@pytest.mark.asyncio
async def test_streaming_rejection_raises_before_events(gateway_client, gigachat):
    body = RecordingStream([b'{"message": "bad model"}'])
    gigachat.chat_response = httpx.Response(400, stream=body)

    with pytest.raises(RequestError) as exc_info:
        await gateway_client.send(make_request(stream=True))

    assert exc_info.value.status_code == 400
    assert "bad model" in exc_info.value.body
    assert body.closed


@pytest.mark.asyncio
async def test_streaming_release_on_early_abandonment(gateway_client, gigachat):
    body = RecordingStream([sse(delta("a")), sse(delta("b")), sse("[DONE]")])
    gigachat.chat_response = httpx.Response(200, stream=body)

    stream = await gateway_client.stream(make_request())
    async with stream:
        first = await stream.__anext__()

    assert first == TextDelta("a")
    assert body.closed


@pytest.mark.asyncio
async def test_streaming_transport_failure_yields_error_event(gateway_client, gigachat):
    body = RecordingStream([sse(delta("a"))], error=httpx.ReadError("connection reset by peer"))
    gigachat.chat_response = httpx.Response(200, stream=body)

    stream = await gateway_client.send(make_request(stream=True))
    events = [event async for event in stream]

    assert events[0] == TextDelta("a")
    assert isinstance(events[-1], Error)
    assert len(events) == 2
    assert body.closed


@pytest.mark.asyncio
async def test_generate_forces_non_streaming(gateway_client, gigachat):
    gigachat.chat_response = httpx.Response(200, json={"choices": [{"message": {"content": "ok"}, "finish_reason": "length"}]})

    result = await gateway_client.generate(make_request(stream=True))

    assert result.finish_reason is FinishReason.LENGTH
    assert json.loads(gigachat.chat_requests[0].content)["stream"] is False


@pytest.mark.asyncio
async def test_endpoint_suffix_not_duplicated(http_client, token_cache, gigachat):
    gigachat.chat_response = httpx.Response(200, json={"choices": [{"message": {"content": "ok"}, "finish_reason": "stop"}]})
    client = GigaChatClient(
        base_url=f"{API_URL}/chat/completions",
        credentials=CREDENTIALS,
        token_cache=token_cache,
        http_client=http_client,
    )

    await client.send(make_request())

    assert str(gigachat.chat_requests[0].url) == f"{API_URL}/chat/completions"


@pytest.mark.asyncio
async def test_shared_token_cache_between_clients(http_client, token_cache, gigachat):
    gigachat.chat_response = lambda request: httpx.Response(
        200, json={"choices": [{"message": {"content": "ok"}, "finish_reason": "stop"}]}
    )
    first = GigaChatClient(base_url=API_URL, credentials=CREDENTIALS, token_cache=token_cache, http_client=http_client)
    second = GigaChatClient(base_url=API_URL, credentials=CREDENTIALS, token_cache=token_cache, http_client=http_client)

    await first.send(make_request())
    await second.send(make_request())

    assert len(gigachat.auth_requests) == 1


@pytest.mark.asyncio
async def test_injected_http_client_is_not_closed(gateway_client, http_client):
    async with gateway_client:
        pass

    assert not http_client.is_closed


@pytest.mark.asyncio
async def test_owned_http_client_is_closed():
    client = GigaChatClient(base_url=API_URL, credentials=CREDENTIALS)

    await client.aclose()

    assert client._http_client.is_closed


def test_missing_configuration_is_rejected():
    with pytest.raises(ValueError):
        GigaChatClient(base_url=API_URL, credentials="")
