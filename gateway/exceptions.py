"""Error taxonomy for the GigaChat gateway client.

AuthenticationError belongs to the OAuth package and is re-exported here so
callers can import every gateway error from one place.
"""
from typing import Optional

from gigachat_oauth.exceptions import AuthenticationError


class GatewayError(Exception):
    """Base class for errors raised by the chat side of the gateway"""


class RequestError(GatewayError):
    """The chat completion call was rejected before any output was produced."""

    def __init__(self, status_code: Optional[int], detail: str = "", body: str = ""):
        self.status_code = status_code
        self.detail = detail
        self.body = body
        if status_code:
            message = f"Failed to generate completion: {status_code} {detail}".rstrip()
        else:
            message = f"Failed to generate completion: {detail}"
        super().__init__(message)


class StreamParseError(GatewayError):
    """A single stream frame could not be decoded.

    Recovered locally by the stream parser: the frame is skipped.
    """

    def __init__(self, line: str, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"Malformed stream frame ({reason}): {line[:100]}")


class TransportError(GatewayError):
    """Reading the response stream failed mid-flight.

    Surfaced to consumers as a terminal Error event, not raised.
    """

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


__all__ = [
    "AuthenticationError",
    "GatewayError",
    "RequestError",
    "StreamParseError",
    "TransportError",
]
