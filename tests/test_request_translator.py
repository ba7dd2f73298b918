"""Tests for request translation and finish reason mapping."""

import pytest

from gateway import ChatRequest, FinishReason, Message, flatten_content, map_finish_reason, translate_request


def test_multipart_content_is_flattened():
    content = [
        {"type": "text", "text": "a"},
        {"type": "image", "image": "data:image/png;base64,AAAA"},
        {"type": "text", "text": "b"},
    ]
    request = ChatRequest(model="GigaChat", messages=[Message(role="user", content=content)])

    body = translate_request(request)

    assert body["messages"] == [{"role": "user", "content": "ab"}]


def test_flatten_content_variants():
    assert flatten_content("plain") == "plain"
    assert flatten_content([]) == ""
    assert flatten_content([{"type": "image_url", "image_url": {"url": "x"}}]) == ""
    assert flatten_content([{"type": "text"}, {"type": "text", "text": "x"}]) == "x"
    assert flatten_content(None) == ""


def test_assistant_and_system_content_flattened_too():
    request = ChatRequest(
        model="GigaChat",
        messages=[
            Message(role="system", content=[{"type": "text", "text": "be brief"}]),
            Message(role="assistant", content="ok"),
        ],
    )

    assert translate_request(request)["messages"] == [
        {"role": "system", "content": "be brief"},
        {"role": "assistant", "content": "ok"},
    ]


def test_sampling_parameters_use_vendor_names():
    request = ChatRequest(
        model="GigaChat-Pro",
        messages=[Message(role="user", content="hi")],
        temperature=0.3,
        max_tokens=256,
        top_p=0.9,
        repetition_penalty=1.1,
        stream=True,
    )

    assert translate_request(request) == {
        "model": "GigaChat-Pro",
        "messages": [{"role": "user", "content": "hi"}],
        "stream": True,
        "temperature": 0.3,
        "max_tokens": 256,
        "top_p": 0.9,
        "repetition_penalty": 1.1,
    }


def test_absent_parameters_are_omitted():
    request = ChatRequest(model="GigaChat", messages=[Message(role="user", content="hi")], temperature=0.0)

    body = translate_request(request)

    assert body["temperature"] == 0.0
    for field in ("max_tokens", "top_p", "repetition_penalty"):
        assert field not in body
    assert body["stream"] is False


def test_translation_does_not_mutate_request():
    content = [{"type": "text", "text": "a"}]
    request = ChatRequest(model="GigaChat", messages=[Message(role="user", content=content)])

    translate_request(request)

    assert request.messages[0].content == [{"type": "text", "text": "a"}]


def test_unknown_role_is_rejected():
    with pytest.raises(ValueError, match="Unsupported message role"):
        Message(role="tool", content="x")


@pytest.mark.parametrize(
    "vendor_reason, expected",
    [
        ("stop", FinishReason.STOP),
        ("length", FinishReason.LENGTH),
        ("content-filter", FinishReason.CONTENT_FILTER),
        ("function_call", FinishReason.TOOL_CALLS),
        ("banana", FinishReason.UNKNOWN),
        ("error", FinishReason.ERROR),
        ("content_filter", FinishReason.CONTENT_FILTER),
        (None, FinishReason.UNKNOWN),
    ],
)
def test_finish_reason_mapping(vendor_reason, expected):
    assert map_finish_reason(vendor_reason) is expected


def test_finish_reason_values():
    assert [reason.value for reason in FinishReason] == [
        "stop", "length", "content-filter", "tool-calls", "error", "unknown",
    ]
