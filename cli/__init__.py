"""CLI package for the GigaChat gateway

Provides commands to run the proxy server, send one-off prompts and inspect
the cached OAuth token.
"""

from cli.main import main

__all__ = [
    "main",
]
