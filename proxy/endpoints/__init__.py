"""
Endpoint handlers for the proxy server.
"""
from .health import router as health_router
from .auth import router as auth_router
from .chat_completions import router as chat_completions_router

__all__ = [
    'health_router',
    'auth_router',
    'chat_completions_router',
]
