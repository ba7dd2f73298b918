"""
Authentication status endpoint.
"""
from fastapi import APIRouter, Depends

from gateway import GigaChatClient
from ..dependencies import get_gateway_client

router = APIRouter()


@router.get("/auth/status")
async def auth_status(client: GigaChatClient = Depends(get_gateway_client)):
    """Get token status without exposing secrets"""
    return client.token_cache.status()
