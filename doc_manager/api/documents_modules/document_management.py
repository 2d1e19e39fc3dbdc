"""
Document management endpoints: list, get, raw text and delete.
"""

from typing import List
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from doc_manager.models.document import Document
from doc_manager.models.schemas import (
    ErrorResponse,
    NOT_FOUND_RESPONSE,
    TRANSPORT_ERROR_RESPONSE,
)
from doc_manager.services.document import DocumentRepository
from .common import (
    get_document_repository,
    log_operation_start,
    log_operation_success,
)

router = APIRouter()

DELETE_CONFIRMATION = "Document deleted successfully"


@router.get(
    "/documents",
    response_model=List[Document],
    summary="List Documents",
    operation_id="listDocuments",
    description="""List every document in the container.

Attachment blobs never appear as documents; each document reports its
attachment key as `attachmentRef`. Binary documents have `content: null`
and `isBinary: true`.""",
    responses=TRANSPORT_ERROR_RESPONSE,
)
async def list_documents(
    repository: DocumentRepository = Depends(get_document_repository),
):
    documents = await repository.list_documents()
    log_operation_success("Document listing", count=len(documents))
    return documents


@router.get(
    "/documents/{document_id}",
    response_model=Document,
    summary="Get Document",
    operation_id="getDocument",
    responses={**NOT_FOUND_RESPONSE, **TRANSPORT_ERROR_RESPONSE},
)
async def get_document(
    document_id: str,
    repository: DocumentRepository = Depends(get_document_repository),
):
    """Fetch one document and the key of its attachment, if any."""
    return await repository.get_document(document_id)


@router.get(
    "/documents/{document_id}/content",
    response_class=PlainTextResponse,
    summary="Get Document Text",
    operation_id="getDocumentText",
    responses={
        **NOT_FOUND_RESPONSE,
        422: {"model": ErrorResponse, "description": "Document is binary"},
    },
)
async def get_document_text(
    document_id: str,
    repository: DocumentRepository = Depends(get_document_repository),
):
    """Return the document body as `text/plain`; 422 when it is not UTF-8."""
    return PlainTextResponse(await repository.get_document_text(document_id))


@router.delete(
    "/documents/{document_id}",
    response_model=str,
    summary="Delete Document",
    operation_id="deleteDocument",
    description="Delete a document together with its attachment.",
    responses={**NOT_FOUND_RESPONSE, **TRANSPORT_ERROR_RESPONSE},
)
async def delete_document(
    document_id: str,
    repository: DocumentRepository = Depends(get_document_repository),
):
    log_operation_start("Document deletion", document_id=document_id)
    await repository.delete_document(document_id)
    log_operation_success("Document deletion", document_id=document_id)
    return DELETE_CONFIRMATION
