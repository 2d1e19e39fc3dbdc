import uuid
import traceback
from typing import Any, Dict, Optional
from fastapi import Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from doc_manager.core.config import settings, ConfigurationError
from doc_manager.core.logging import get_logger

logger = get_logger(__name__)


class DocumentManagerError(Exception):
    """Base exception for the document manager application."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or "INTERNAL_ERROR"
        self.details = details or {}
        super().__init__(self.message)


class DocumentNotFoundError(DocumentManagerError):
    """The primary blob of a document does not exist."""

    def __init__(self, message: str, document_id: Optional[str] = None):
        details = {"document_id": document_id} if document_id else None
        super().__init__(message, "NOT_FOUND", details)


class StorageTransportError(DocumentManagerError):
    """A blob store call (list, get, put, delete) failed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "TRANSPORT_ERROR", details)


class ContentEncodingError(DocumentManagerError):
    """Bytes that the caller needs as text are not valid UTF-8."""

    def __init__(self, message: str, document_id: Optional[str] = None):
        details = {"document_id": document_id} if document_id else None
        super().__init__(message, "ENCODING_ERROR", details)


class DocumentValidationError(DocumentManagerError):
    """Request data failed validation."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class PayloadTooLargeError(DocumentManagerError):
    """Uploaded file exceeds the configured size limit."""

    def __init__(self, message: str, limit: int, received: int):
        super().__init__(
            message, "PAYLOAD_TOO_LARGE", {"limit": limit, "received": received}
        )


STATUS_CODE_MAP = {
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "TRANSPORT_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "ENCODING_ERROR": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "PAYLOAD_TOO_LARGE": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    "CONFIGURATION_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "INTERNAL_ERROR",
    details: Optional[Dict[str, Any]] = None,
    error_id: Optional[str] = None,
) -> JSONResponse:
    """Create the standard `{message, code, error_id}` error body."""

    error_response = {
        "message": message,
        "code": error_code,
        "error_id": error_id or str(uuid.uuid4())[:8],
    }

    if details:
        error_response["details"] = details

    return JSONResponse(status_code=status_code, content=error_response)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle FastAPI and Starlette HTTP exceptions."""
    error_id = str(uuid.uuid4())[:8]

    logger.warning(
        "HTTP exception occurred",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method,
        error_id=error_id,
    )

    return create_error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error_code="HTTP_ERROR",
        error_id=error_id,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors."""
    error_id = str(uuid.uuid4())[:8]

    logger.warning(
        "Validation exception occurred",
        errors=exc.errors(),
        path=request.url.path,
        method=request.method,
        error_id=error_id,
    )

    formatted_errors = [
        {
            "field": ".".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Request validation failed",
        error_code="VALIDATION_ERROR",
        details={"validation_errors": formatted_errors},
        error_id=error_id,
    )


async def document_manager_exception_handler(
    request: Request, exc: DocumentManagerError
) -> JSONResponse:
    """Handle application exceptions, mapping the error code to an HTTP status."""
    error_id = str(uuid.uuid4())[:8]

    status_code = STATUS_CODE_MAP.get(
        exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR
    )

    log = logger.warning if status_code < 500 else logger.error
    log(
        "Application exception occurred",
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
        path=request.url.path,
        method=request.method,
        error_id=error_id,
    )

    return create_error_response(
        status_code=status_code,
        message=exc.message,
        error_code=exc.error_code,
        details=exc.details,
        error_id=error_id,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other unhandled exceptions."""
    error_id = str(uuid.uuid4())[:8]

    logger.error(
        "Unhandled exception occurred",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        error_id=error_id,
        exc_info=True,
    )

    if settings.is_production:
        details = None
        message = "An unexpected error occurred"
    else:
        details = {
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc().split("\n"),
        }
        message = str(exc)

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message=message,
        error_code="INTERNAL_ERROR",
        details=details,
        error_id=error_id,
    )


def setup_exception_handlers(app):
    """Setup all exception handlers for the FastAPI app."""

    # Custom application exceptions
    app.add_exception_handler(DocumentManagerError, document_manager_exception_handler)
    app.add_exception_handler(ConfigurationError, document_manager_exception_handler)

    # HTTP exceptions
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Validation errors
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # General exception handler (catch-all)
    app.add_exception_handler(Exception, general_exception_handler)


__all__ = [
    "ConfigurationError",
    "DocumentManagerError",
    "DocumentNotFoundError",
    "StorageTransportError",
    "ContentEncodingError",
    "DocumentValidationError",
    "PayloadTooLargeError",
    "create_error_response",
    "setup_exception_handlers",
]
