"""
Health check endpoints.
"""
import time
from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint reporting whether the gateway client is configured"""
    configured = getattr(request.app.state, "gateway_client", None) is not None
    return {
        "status": "healthy" if configured else "unconfigured",
        "provider": "gigachat",
        "timestamp": time.time(),
    }


@router.get("/healthz")
async def healthz_check():
    """Liveness probe (Kubernetes style)"""
    return {"status": "ok", "timestamp": time.time()}
