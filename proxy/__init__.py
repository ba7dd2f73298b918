"""
GigaChat Gateway Proxy - OpenAI-compatible HTTP front end for the gateway client.
"""
from .server import ProxyServer, setup_logging
from .app import app, create_app

__version__ = "1.0.0"

__all__ = [
    'ProxyServer',
    'app',
    'create_app',
    'setup_logging',
]
