"""
Logging utilities for request debugging and tracing.
"""
import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

SENSITIVE_HEADERS = ('authorization', 'x-api-key', 'api-key', 'cookie')


def redact_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Return a copy of headers with credentials replaced"""
    return {
        name: "[REDACTED]" if name.lower() in SENSITIVE_HEADERS else value
        for name, value in headers.items()
    }


def log_request(request_id: str, request_data: Dict[str, Any], endpoint: str, headers: Optional[Dict[str, str]] = None):
    """Log incoming request details including headers"""
    if not logger.isEnabledFor(logging.DEBUG):
        return

    logger.debug(f"[{request_id}] Endpoint: {endpoint}")
    logger.debug(f"[{request_id}] Model: {request_data.get('model') or 'default'}")
    logger.debug(f"[{request_id}] Stream: {request_data.get('stream', False)}")
    logger.debug(f"[{request_id}] Messages: {len(request_data.get('messages') or [])}")

    sampling = {
        key: request_data[key]
        for key in ('temperature', 'max_tokens', 'top_p', 'presence_penalty', 'repetition_penalty')
        if request_data.get(key) is not None
    }
    if sampling:
        logger.debug(f"[{request_id}] Sampling: {sampling}")

    if headers:
        for header_name, header_value in redact_headers(headers).items():
            logger.debug(f"[{request_id}] {header_name}: {header_value}")
