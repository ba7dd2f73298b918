"""
Timing middleware for the proxy.
"""
import time
import logging
from fastapi import Request

logger = logging.getLogger(__name__)

TIMED_PREFIXES = ("/v1/", "/auth/")


async def log_requests_middleware(request: Request, call_next):
    """Log API calls with their duration and expose it as X-Process-Time"""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    # For streaming responses this measures time to first byte
    if request.url.path.startswith(TIMED_PREFIXES):
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.3f}s")

    response.headers["X-Process-Time"] = f"{elapsed:.3f}"
    return response
