"""
Document download endpoint.

Serves the raw bytes of any blob key as a file attachment. Attachments are
downloaded through the same route using their `attachmentRef` key.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from doc_manager.models.schemas import NOT_FOUND_RESPONSE
from doc_manager.services.document import DocumentRepository
from .common import get_document_repository, log_operation_success

router = APIRouter()


@router.get(
    "/documents/download/{key}",
    summary="Download Document",
    operation_id="downloadDocument",
    response_class=Response,
    description="""Download the stored bytes of a document or attachment.

`Content-Type` is `text/plain` when the bytes are valid UTF-8 and
`application/octet-stream` otherwise. The suggested filename is
`<key>.txt` or `<key>.bin` accordingly, sent as an ASCII `filename` and
a UTF-8 `filename*` (RFC 6266) so non-ASCII attachment names survive.""",
    responses={
        200: {
            "content": {"application/octet-stream": {}, "text/plain": {}},
            "description": "File bytes",
        },
        **NOT_FOUND_RESPONSE,
    },
)
async def download_document(
    key: str,
    repository: DocumentRepository = Depends(get_document_repository),
):
    download = await repository.download(key)

    log_operation_success(
        "Document download",
        key=download.key,
        filename=download.filename,
        size=len(download.data),
        is_binary=download.is_binary,
    )

    return Response(
        content=download.data,
        media_type=download.media_type,
        headers={"Content-Disposition": download.content_disposition},
    )
