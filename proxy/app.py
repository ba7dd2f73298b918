"""
FastAPI application initialization and configuration.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional, Tuple

import httpx
from fastapi import FastAPI

import settings
from gateway import GigaChatClient
from gigachat_oauth import TokenCache
from .middleware import log_requests_middleware
from .endpoints import (
    health_router,
    auth_router,
    chat_completions_router,
)

logger = logging.getLogger(__name__)


def build_timeouts() -> Tuple[httpx.Timeout, httpx.Timeout]:
    """Return (client default, non-streaming call) timeouts from settings"""
    default = httpx.Timeout(
        settings.STREAM_TIMEOUT,
        connect=settings.CONNECT_TIMEOUT,
        read=settings.READ_TIMEOUT,
    )
    # A non-streaming call sends nothing until the whole answer is generated
    non_streaming = httpx.Timeout(
        settings.STREAM_TIMEOUT,
        connect=settings.CONNECT_TIMEOUT,
        read=settings.REQUEST_TIMEOUT,
    )
    return default, non_streaming


def build_gateway_client() -> Optional[GigaChatClient]:
    """Create the gateway client from settings, or None when unconfigured"""
    if not settings.GIGACHAT_API_KEY:
        logger.error("GIGACHAT_API_KEY is not set - chat endpoints will return 503")
        return None

    timeout, request_timeout = build_timeouts()
    # Exchanges are rare, each one uses a short-lived client
    token_cache = TokenCache(
        auth_url=settings.GIGACHAT_AUTH_URL,
        scope=settings.GIGACHAT_SCOPE,
        verify=settings.GIGACHAT_VERIFY_SSL,
        single_flight=settings.TOKEN_SINGLE_FLIGHT,
    )
    return GigaChatClient(
        base_url=settings.GIGACHAT_API_URL,
        credentials=settings.GIGACHAT_API_KEY,
        model=settings.GIGACHAT_MODEL,
        token_cache=token_cache,
        timeout=timeout,
        request_timeout=request_timeout,
        verify=settings.GIGACHAT_VERIFY_SSL,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A client installed before startup (e.g. by tests) is left alone
    owned_client = None
    if getattr(app.state, "gateway_client", None) is None:
        owned_client = build_gateway_client()
        app.state.gateway_client = owned_client
        if owned_client is not None:
            logger.info(f"GigaChat gateway client ready for {settings.GIGACHAT_API_URL} (model={settings.GIGACHAT_MODEL})")
    try:
        yield
    finally:
        if owned_client is not None:
            await owned_client.aclose()
            app.state.gateway_client = None


def create_app() -> FastAPI:
    """Create the FastAPI application with all routers and middleware"""
    application = FastAPI(title="GigaChat Gateway Proxy", version="1.0.0", lifespan=lifespan)
    application.state.gateway_client = None

    application.middleware("http")(log_requests_middleware)

    application.include_router(health_router)
    application.include_router(auth_router)
    application.include_router(chat_completions_router)

    logger.debug("FastAPI application initialized with all routers and middleware")
    return application


app = create_app()
