"""
Request and response handlers for the proxy server.
"""
from .streaming_handler import create_openai_stream

__all__ = [
    'create_openai_stream',
]
