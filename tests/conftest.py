"""Pytest fixtures and config.

The project uses a flat layout (top-level ``gateway``, ``gigachat_oauth``,
``proxy`` packages and a ``settings`` module). Add the repository root to
``sys.path`` so tests run from a plain checkout without an editable install.
"""

import asyncio
import json
import sys
from pathlib import Path

import httpx
import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

AUTH_URL = "https://auth.test/api/v2/oauth"
API_URL = "https://gigachat.test/api/v1"
CREDENTIALS = "Y2xpZW50OnNlY3JldA=="
START_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced clock for token expiry tests"""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGigaChat:
    """Scripted OAuth and chat endpoints served through httpx.MockTransport"""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.auth_requests = []
        self.chat_requests = []
        self.auth_status = 200
        self.token_ttl = 1800
        self.auth_delay = 0.0
        self.expires_in_milliseconds = False
        self.chat_response = httpx.Response(200, json={})

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/oauth"):
            return await self._auth(request)
        self.chat_requests.append(request)
        if callable(self.chat_response):
            return self.chat_response(request)
        return self.chat_response

    async def _auth(self, request: httpx.Request) -> httpx.Response:
        self.auth_requests.append(request)
        if self.auth_delay:
            await asyncio.sleep(self.auth_delay)
        if self.auth_status != 200:
            return httpx.Response(self.auth_status, json={"code": 6, "message": "credentials doesn't match db data"})

        expires_at = self.clock.now + self.token_ttl
        if self.expires_in_milliseconds:
            expires_at = int(expires_at * 1000)
        return httpx.Response(
            200,
            json={"access_token": f"token-{len(self.auth_requests)}", "expires_at": expires_at},
        )


class RecordingStream(httpx.AsyncByteStream):
    """Response body that yields scripted chunks and records whether it was closed"""

    def __init__(self, chunks, error: Exception = None):
        self.chunks = list(chunks)
        self.error = error
        self.closed = False
        self.yielded = 0

    async def __aiter__(self):
        for chunk in self.chunks:
            self.yielded += 1
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


def sse(*payloads) -> bytes:
    """Encode payloads as a GigaChat SSE body; str payloads are sent verbatim"""
    lines = []
    for payload in payloads:
        data = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
        lines.append(f"data: {data}\n\n")
    return "".join(lines).encode("utf-8")


def delta(text: str, finish_reason=None, usage=None) -> dict:
    """A streaming chunk record carrying a text delta"""
    record = {
        "choices": [{"index": 0, "delta": {"role": "assistant", "content": text}, "finish_reason": finish_reason}],
        "created": 1700000000,
        "model": "GigaChat",
        "object": "chat.completion",
    }
    if usage is not None:
        record["usage"] = usage
    return record


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def gigachat(fake_clock):
    return FakeGigaChat(fake_clock)


@pytest.fixture
def http_client(gigachat):
    return httpx.AsyncClient(transport=httpx.MockTransport(gigachat))


@pytest.fixture
def token_cache(http_client, fake_clock):
    from gigachat_oauth import TokenCache

    return TokenCache(auth_url=AUTH_URL, scope="GIGACHAT_API_PERS", http_client=http_client, clock=fake_clock)


@pytest.fixture
def gateway_client(http_client, token_cache):
    from gateway import GigaChatClient

    return GigaChatClient(
        base_url=API_URL,
        credentials=CREDENTIALS,
        model="GigaChat",
        token_cache=token_cache,
        http_client=http_client,
    )
