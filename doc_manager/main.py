"""FastAPI Application Entry Point.

Document manager backend: text or binary documents, each optionally paired
with one uploaded attachment, stored in a flat blob container (Azure Blob
Storage, Google Cloud Storage, or in memory).
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from doc_manager.core.config import settings
from doc_manager.core.logging import configure_logging, setup_request_logging, get_logger
from doc_manager.core.exceptions import setup_exception_handlers
from doc_manager.core.middleware import setup_cors_middleware, setup_timing_middleware
from doc_manager.core.blob_store import BlobStore, build_blob_store
from doc_manager.services.document import DocumentRepository
from doc_manager.api.health import router as health_router
from doc_manager.api.documents_main import router as documents_router

# Configure logging first
configure_logging()
logger = get_logger(__name__)


def attach_storage(app: FastAPI, store: BlobStore) -> None:
    """Build the repository for ``store`` and make both available to handlers."""
    app.state.blob_store = store
    app.state.document_repository = DocumentRepository(
        store,
        rollback_on_attachment_failure=settings.ROLLBACK_ON_ATTACHMENT_FAILURE,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    logger.info(
        "Starting application",
        project_name=settings.PROJECT_NAME,
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
        storage_backend=settings.STORAGE_BACKEND,
        container=settings.BLOB_CONTAINER_NAME,
    )

    if getattr(app.state, "blob_store", None) is None:
        attach_storage(app, build_blob_store(settings))

    # Failing here aborts startup
    if settings.CREATE_CONTAINER_IF_MISSING:
        created = await app.state.blob_store.ensure_container()
        if created:
            logger.info("Blob container created", container=settings.BLOB_CONTAINER_NAME)

    logger.info("Application startup completed")

    yield

    logger.info("Shutting down application")


API_DESCRIPTION = """# Document Manager API

Create, read, update, delete and download documents. Each document is a
text or binary payload with at most one attached file.

**Storage:** one blob per document (`<id>`) plus one blob per attachment
(`<id>_<filename>`).
"""


def create_app(blob_store: Optional[BlobStore] = None) -> FastAPI:
    """Create the application; ``blob_store`` overrides the configured backend."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=API_DESCRIPTION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    if blob_store is not None:
        attach_storage(app, blob_store)

    # CORS first so preflight requests are answered before anything else
    setup_cors_middleware(app)
    setup_timing_middleware(app)
    setup_exception_handlers(app)
    setup_request_logging(app)

    app.include_router(health_router)
    app.include_router(documents_router, prefix=settings.API_PREFIX)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "doc_manager.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True,
    )
