"""
Shared utilities and dependencies for document API endpoints.

Domain errors raised by the repository are not caught here; the
application-level exception handlers turn them into `{message}` responses.
"""

from typing import Optional

from fastapi import Request, UploadFile

from doc_manager.core.config import settings
from doc_manager.core.exceptions import DocumentValidationError, PayloadTooLargeError
from doc_manager.core.logging import get_api_logger
from doc_manager.models.document import UploadedFile
from doc_manager.services.document import DocumentRepository
from doc_manager.utils.validators import ValidationError, sanitize_filename

# Shared logger instance
logger = get_api_logger()


def get_document_repository(request: Request) -> DocumentRepository:
    """Repository built at startup and attached to the application state."""
    return request.app.state.document_repository


async def read_uploaded_file(file: Optional[UploadFile]) -> Optional[UploadedFile]:
    """Read an optional multipart file part.

    A part with neither a filename nor any bytes is what browsers send for
    an empty file input and counts as no file.
    """
    if file is None:
        return None

    data = await file.read()
    if not file.filename and not data:
        return None

    if len(data) > settings.MAX_UPLOAD_SIZE:
        raise PayloadTooLargeError(
            f"File size exceeds maximum limit of {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB",
            limit=settings.MAX_UPLOAD_SIZE,
            received=len(data),
        )

    try:
        filename = sanitize_filename(file.filename)
    except ValidationError as e:
        raise DocumentValidationError(str(e), {"field": "file"})

    return UploadedFile(filename=filename, data=data)


def log_operation_start(operation: str, **context) -> None:
    """Log the start of an operation consistently."""
    logger.info(f"{operation} started", **context)


def log_operation_success(operation: str, **context) -> None:
    """Log successful operation completion consistently."""
    logger.info(f"{operation} completed successfully", **context)
