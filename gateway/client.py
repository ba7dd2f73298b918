"""
GigaChat chat completions client.

Orchestrates token acquisition, request translation and the HTTP call, and
returns either a composed ChatResult or a live EventStream.
"""
import dataclasses
import logging
import uuid
from typing import Dict, Optional, Union, TYPE_CHECKING

import httpx

from settings import GIGACHAT_API_URL, GIGACHAT_API_KEY, GIGACHAT_MODEL, GIGACHAT_VERIFY_SSL, TOKEN_SINGLE_FLIGHT
from gigachat_oauth import CachedCredential, TokenCache
from .exceptions import RequestError
from .request_translator import translate_request
from .response_converter import convert_completion_response
from .stream_parser import EventStream, parse_event_stream
from .types import ChatRequest, ChatResult

if TYPE_CHECKING:
    from stream_debug import StreamTracer

logger = logging.getLogger(__name__)


class GigaChatClient:
    """Client for the GigaChat /chat/completions endpoint"""

    def __init__(
        self,
        base_url: str = GIGACHAT_API_URL,
        credentials: str = GIGACHAT_API_KEY,
        model: str = GIGACHAT_MODEL,
        token_cache: Optional[TokenCache] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[httpx.Timeout] = None,
        request_timeout: Optional[httpx.Timeout] = None,
        verify: bool = GIGACHAT_VERIFY_SSL,
    ):
        """
        Initialize the client

        Args:
            base_url: API base URL (with or without the /chat/completions suffix)
            credentials: Base64 authorization key for the OAuth exchange
            model: Default model for requests built by the caller
            token_cache: Shared token cache; a private one is created when None
            http_client: HTTP client to use; the client owns and closes one it creates
            timeout: Timeout for an owned HTTP client; no timeout when None
            request_timeout: Per-call timeout for non-streaming requests, which only
                answer once the whole completion is generated; the client default when None
            verify: TLS verification for an owned HTTP client
        """
        if not base_url:
            raise ValueError("GigaChat base URL is not configured")
        if not credentials:
            raise ValueError("GigaChat credentials are not configured")

        self.base_url = base_url
        self.credentials = credentials
        self.model = model
        self.request_timeout = request_timeout

        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else httpx.Timeout(None),
            verify=verify,
        )
        self.token_cache = token_cache or TokenCache(
            http_client=self._http_client,
            verify=verify,
            single_flight=TOKEN_SINGLE_FLIGHT,
        )

    def _get_endpoint(self) -> str:
        """Build the chat completions endpoint URL"""
        base_url = self.base_url
        if base_url.endswith('/chat/completions'):
            return base_url
        return f"{base_url.rstrip('/')}/chat/completions"

    def _get_headers(self, credential: CachedCredential, accept: str = "application/json") -> Dict[str, str]:
        """Build request headers"""
        return {
            "Authorization": f"Bearer {credential.token}",
            "Content-Type": "application/json",
            "Accept": accept,
        }

    async def send(
        self,
        request: ChatRequest,
        request_id: Optional[str] = None,
        tracer: Optional["StreamTracer"] = None,
    ) -> Union[ChatResult, EventStream]:
        """Send a chat request

        Args:
            request: The chat request; ``request.stream`` selects the mode
            request_id: Request ID for logging
            tracer: Optional stream tracer, closed when the stream is released

        Returns:
            ChatResult for non-streaming requests, EventStream otherwise

        Raises:
            AuthenticationError: If no token could be obtained
            RequestError: If the chat call is rejected before producing output
        """
        request_id = request_id or str(uuid.uuid4())[:8]
        credential = await self.token_cache.get_valid_token(self.credentials)

        body = translate_request(request)
        logger.debug(f"[{request_id}] GigaChat request: model={body['model']} stream={body['stream']} messages={len(body['messages'])}")

        if request.stream:
            return await self._stream(body, credential, request_id, tracer)
        return await self._generate(body, credential, request_id)

    async def generate(self, request: ChatRequest, request_id: Optional[str] = None) -> ChatResult:
        """Send a request in non-streaming mode"""
        return await self.send(dataclasses.replace(request, stream=False), request_id)

    async def stream(
        self,
        request: ChatRequest,
        request_id: Optional[str] = None,
        tracer: Optional["StreamTracer"] = None,
    ) -> EventStream:
        """Send a request in streaming mode"""
        return await self.send(dataclasses.replace(request, stream=True), request_id, tracer)

    async def _generate(self, body: dict, credential: CachedCredential, request_id: str) -> ChatResult:
        endpoint = self._get_endpoint()
        try:
            response = await self._http_client.post(
                endpoint,
                json=body,
                headers=self._get_headers(credential),
                timeout=self.request_timeout if self.request_timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.HTTPError as e:
            logger.error(f"[{request_id}] GigaChat request failed: {e}")
            raise RequestError(None, f"{type(e).__name__}: {e}") from e

        logger.debug(f"[{request_id}] GigaChat response status: {response.status_code}")
        if not response.is_success:
            self._check_rejected_token(response.status_code, request_id)
            logger.error(f"[{request_id}] GigaChat error {response.status_code}: {response.text}")
            raise RequestError(response.status_code, response.reason_phrase, body=response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise RequestError(response.status_code, f"Invalid JSON body: {e}", body=response.text) from e

        return convert_completion_response(data)

    async def _stream(
        self,
        body: dict,
        credential: CachedCredential,
        request_id: str,
        tracer: Optional["StreamTracer"],
    ) -> EventStream:
        endpoint = self._get_endpoint()
        if tracer:
            tracer.log_note(f"starting GigaChat stream to {endpoint}")
            tracer.log_note(f"model={body.get('model')}")

        http_request = self._http_client.build_request(
            "POST",
            endpoint,
            json=body,
            headers=self._get_headers(credential, accept="text/event-stream"),
        )
        try:
            response = await self._http_client.send(http_request, stream=True)
        except httpx.HTTPError as e:
            logger.error(f"[{request_id}] GigaChat stream request failed: {e}")
            if tracer:
                tracer.log_error(f"request failed: {e}")
                tracer.close()
            raise RequestError(None, f"{type(e).__name__}: {e}") from e

        if tracer:
            tracer.log_note(f"GigaChat responded with status={response.status_code}")

        if not response.is_success:
            try:
                error_body = (await response.aread()).decode("utf-8", "replace")
            except httpx.HTTPError:
                error_body = ""
            finally:
                await response.aclose()
            self._check_rejected_token(response.status_code, request_id)
            logger.error(f"[{request_id}] GigaChat stream error {response.status_code}: {error_body}")
            if tracer:
                tracer.log_error(f"status={response.status_code} body={error_body}")
                tracer.close()
            raise RequestError(response.status_code, response.reason_phrase, body=error_body)

        async def release() -> None:
            try:
                await response.aclose()
            finally:
                logger.debug(f"[{request_id}] GigaChat stream released")
                if tracer:
                    tracer.close()

        events = parse_event_stream(response.aiter_bytes(), request_id=request_id, tracer=tracer)
        return EventStream(events, on_close=release, request_id=request_id)

    def _check_rejected_token(self, status_code: int, request_id: str) -> None:
        # The next call re-authenticates; this one is not retried
        if status_code == 401:
            logger.warning(f"[{request_id}] GigaChat rejected the bearer token")
            self.token_cache.invalidate()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it"""
        if self._owns_http_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> "GigaChatClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
