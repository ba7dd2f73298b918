"""OAuth authentication package for the GigaChat API"""

from .exceptions import AuthenticationError
from .models import SAFETY_MARGIN_SECONDS, CachedCredential
from .token_exchange import build_auth_headers, request_access_token
from .token_cache import TokenCache

__all__ = [
    "AuthenticationError",
    "CachedCredential",
    "SAFETY_MARGIN_SECONDS",
    "TokenCache",
    "build_auth_headers",
    "request_access_token",
]
