"""
Document write endpoints.

Both routes take a multipart form with a required `content` text field
and an optional `file` part stored as the document's attachment.
"""

from typing import Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile

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
    read_uploaded_file,
)

router = APIRouter()

UPLOAD_ERROR_RESPONSES = {
    413: {"model": ErrorResponse, "description": "Attachment too large"},
    **TRANSPORT_ERROR_RESPONSE,
}


@router.post(
    "/documents",
    response_model=Document,
    summary="Create Document",
    operation_id="createDocument",
    description="""Create a document with a fresh id.

The `content` field is stored as the document's primary blob. When a `file`
is uploaded it is stored at `<id>_<filename>` and reported as `attachmentRef`.

```bash
curl -X POST "http://localhost:8000/api/documents" \\
  -F "content=hello" \\
  -F "file=@img.png"
```

If the attachment upload fails the document itself has already been stored
and the request fails with 500.""",
    responses=UPLOAD_ERROR_RESPONSES,
)
async def create_document(
    content: str = Form(..., description="Document text"),
    file: Optional[UploadFile] = File(None, description="Optional attachment"),
    repository: DocumentRepository = Depends(get_document_repository),
):
    uploaded = await read_uploaded_file(file)

    log_operation_start(
        "Document creation",
        has_file=uploaded is not None,
        filename=uploaded.filename if uploaded else None,
    )

    document = await repository.create_document(content, uploaded)

    log_operation_success("Document creation", document_id=document.id)
    return document


@router.put(
    "/documents/{document_id}",
    response_model=Document,
    summary="Update Document",
    operation_id="updateDocument",
    description="""Overwrite a document's content, optionally replacing its attachment.

The content is written unconditionally, so updating an unknown id creates it.
A new `file` replaces any previous attachment, even under a different
filename. Without a `file` the existing attachment is kept.""",
    responses={**NOT_FOUND_RESPONSE, **UPLOAD_ERROR_RESPONSES},
)
async def update_document(
    document_id: str,
    content: str = Form(..., description="New document text"),
    file: Optional[UploadFile] = File(None, description="Optional replacement attachment"),
    repository: DocumentRepository = Depends(get_document_repository),
):
    uploaded = await read_uploaded_file(file)

    log_operation_start(
        "Document update",
        document_id=document_id,
        has_file=uploaded is not None,
    )

    document = await repository.update_document(document_id, content, uploaded)

    log_operation_success("Document update", document_id=document_id)
    return document
