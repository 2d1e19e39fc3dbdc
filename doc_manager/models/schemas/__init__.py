"""Pydantic schemas for API requests and responses.

- errors.py: Error response schemas

Import from this module: `from doc_manager.models.schemas import ErrorResponse`
"""

from doc_manager.models.document import Document
from doc_manager.models.schemas.errors import (
    ErrorResponse,
    NOT_FOUND_RESPONSE,
    TRANSPORT_ERROR_RESPONSE,
)

__all__ = [
    "Document",
    "ErrorResponse",
    "NOT_FOUND_RESPONSE",
    "TRANSPORT_ERROR_RESPONSE",
]
