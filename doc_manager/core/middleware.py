"""Middleware configuration for FastAPI application.

Provides:
- CORS middleware setup (single exact origin)
- Request timing middleware
"""

import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from doc_manager.core.config import settings
from doc_manager.core.logging import get_logger

logger = get_logger(__name__)


def setup_cors_middleware(app: FastAPI) -> None:
    """Allow exactly one origin, with credentials, for the configured methods."""
    logger.info(
        "CORS configuration",
        origin=settings.CORS_EXACT_ORIGIN,
        credentials=settings.CORS_CREDENTIALS,
        methods=settings.CORS_METHODS,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CORS_EXACT_ORIGIN],
        allow_credentials=settings.CORS_CREDENTIALS,
        allow_methods=settings.CORS_METHODS,
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )


def setup_timing_middleware(app: FastAPI) -> None:
    """Add request timing middleware."""

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time header to responses."""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(round(process_time, 4))
        return response
