"""
Document API Router.

Aggregates the document endpoints:

- document_upload.py: create and update (multipart content + optional file)
- document_management.py: list, get, raw text, delete
- document_download.py: raw byte download of documents and attachments
- common.py: shared dependencies and logging helpers
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from doc_manager.api.documents_modules.document_upload import router as upload_router
from doc_manager.api.documents_modules.document_management import router as management_router
from doc_manager.api.documents_modules.document_download import router as download_router

WELCOME_MESSAGE = (
    "Welcome to the Document Manager! Use /documents endpoints to manage documents."
)

router = APIRouter()


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def index():
    return WELCOME_MESSAGE


# Order matters: /documents/download/{key} must come before /documents/{document_id}
router.include_router(download_router, tags=["Document Download"])
router.include_router(upload_router, tags=["Document Upload"])
router.include_router(management_router, tags=["Document Management"])
