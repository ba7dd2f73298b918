"""
GigaChat gateway client.

Translates vendor-neutral chat requests into GigaChat calls authenticated with
cached OAuth bearer tokens, and parses streaming responses into typed events.
"""
from .exceptions import AuthenticationError, GatewayError, RequestError, StreamParseError, TransportError
from .types import (
    ChatRequest,
    ChatResult,
    Error,
    Finish,
    FinishReason,
    Message,
    StreamEvent,
    TextDelta,
    Usage,
    UsageUpdate,
)
from .request_translator import flatten_content, translate_request
from .response_converter import map_finish_reason
from .stream_parser import EventStream, parse_event_stream
from .client import GigaChatClient

__all__ = [
    'AuthenticationError',
    'ChatRequest',
    'ChatResult',
    'Error',
    'EventStream',
    'Finish',
    'FinishReason',
    'GatewayError',
    'GigaChatClient',
    'Message',
    'RequestError',
    'StreamEvent',
    'StreamParseError',
    'TextDelta',
    'TransportError',
    'Usage',
    'UsageUpdate',
    'flatten_content',
    'map_finish_reason',
    'parse_event_stream',
    'translate_request',
]
