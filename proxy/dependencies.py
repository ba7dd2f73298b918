"""
FastAPI dependencies shared by the endpoints.
"""
from fastapi import HTTPException, Request

from gateway import GigaChatClient


def get_gateway_client(request: Request) -> GigaChatClient:
    """Return the application's gateway client or fail with 503"""
    client = getattr(request.app.state, "gateway_client", None)
    if client is None:
        raise HTTPException(
            status_code=503,
            detail="GigaChat is not configured. Set GIGACHAT_API_KEY and restart the proxy."
        )
    return client
