"""Error response schemas for OpenAPI documentation."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standardized API error response body."""

    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Failed to get document: Blob not found: 3f2b9c1e"],
    )
    code: str = Field(
        ...,
        description="Error code for client-side handling",
        examples=["NOT_FOUND"],
    )
    error_id: Optional[str] = Field(
        None,
        description="Unique error ID for support tracking",
        examples=["a1b2c3d4"],
    )
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional error context",
    )


NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Document not found"}}
TRANSPORT_ERROR_RESPONSE = {
    500: {"model": ErrorResponse, "description": "Blob store call failed"}
}
