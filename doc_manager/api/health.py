"""Health check endpoints.

Provides endpoints for:
- Basic health checks
- Readiness/liveness probes
"""

import time
from typing import Dict, Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from doc_manager.core.config import settings
from doc_manager.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """Process is up; does not touch the blob store."""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "storage_backend": settings.STORAGE_BACKEND,
    }


@router.get("/ready")
async def readiness_check(request: Request) -> Dict[str, Any]:
    """Readiness probe: the blob container must be reachable."""
    store = request.app.state.blob_store
    if not await store.health_check():
        logger.warning("Readiness check failed: blob container unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "ready": False,
                "reason": "Blob container not reachable",
                "timestamp": time.time(),
            },
        )

    return {"ready": True, "storage_backend": store.backend_name, "timestamp": time.time()}


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    """Liveness probe endpoint."""
    return {"alive": True, "timestamp": time.time()}
