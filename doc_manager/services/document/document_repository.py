"""
Document Repository - documents and attachments on top of a blob store.

Every operation translates to one or more blob store calls:

- create:   put(id), then put(id_filename) when a file is uploaded
- read:     get(id), then list(id_) to discover the attachment
- list:     list(), then get() for every primary key
- update:   put(id), then put(id_filename) and removal of other attachments
- delete:   delete(id), then delete() of every attachment of id
- download: get(key) for any key, primary or attachment

The two writes of create/update are not transactional. When the attachment
write fails the primary write stays in place and the caller gets a
StorageTransportError, unless ``rollback_on_attachment_failure`` is set, in
which case a freshly created primary blob is deleted again.

The repository keeps no document state; the blob store is the source of truth.
"""

import asyncio
from typing import List, Optional, Union

from doc_manager.core.blob_store import BlobNotFoundError, BlobStore, BlobStoreError
from doc_manager.core.exceptions import (
    ContentEncodingError,
    DocumentNotFoundError,
    StorageTransportError,
)
from doc_manager.core.logging import get_service_logger
from doc_manager.models.document import Document, DocumentDownload, UploadedFile

from .content_classifier import TEXT_ENCODING, classify
from .document_listing import partition_keys, select_attachment
from .key_naming import (
    companion_key,
    companion_prefix,
    generate_document_id,
    is_valid_document_id,
)


class DocumentRepository:
    """CRUD and download over documents stored as blobs."""

    def __init__(self, store: BlobStore, rollback_on_attachment_failure: bool = False):
        self.store = store
        self.rollback_on_attachment_failure = rollback_on_attachment_failure
        self.logger = get_service_logger("document")

    # ========================================
    # STORE HELPERS
    # ========================================

    def _require_document_id(self, document_id: str) -> None:
        if not is_valid_document_id(document_id):
            raise DocumentNotFoundError(
                f"Document not found: {document_id}", document_id=document_id
            )

    async def _get(self, key: str, action: str) -> bytes:
        try:
            return await self.store.get(key)
        except BlobNotFoundError as e:
            raise DocumentNotFoundError(f"Failed to {action}: {e}", document_id=key)
        except BlobStoreError as e:
            self.logger.error(f"Failed to {action}", key=key, error=str(e))
            raise StorageTransportError(f"Failed to {action}: {e}", {"key": key})

    async def _put(self, key: str, data: bytes, action: str) -> None:
        try:
            await self.store.put(key, data)
        except BlobStoreError as e:
            self.logger.error(f"Failed to {action}", key=key, error=str(e))
            raise StorageTransportError(f"Failed to {action}: {e}", {"key": key})

    async def _list(self, prefix: Optional[str] = None) -> List[str]:
        try:
            return await self.store.list(prefix)
        except BlobStoreError as e:
            self.logger.error("Failed to list blobs", prefix=prefix, error=str(e))
            raise StorageTransportError(f"Failed to list blobs: {e}")

    async def _delete_attachments(self, document_id: str, keep: Optional[str] = None) -> List[str]:
        """Delete every attachment of ``document_id`` except ``keep``."""
        removed = []
        for key in await self._list(companion_prefix(document_id)):
            if key == keep:
                continue
            try:
                await self.store.delete(key)
            except BlobNotFoundError:
                continue
            except BlobStoreError as e:
                self.logger.error("Failed to delete attachment", key=key, error=str(e))
                raise StorageTransportError(
                    f"Failed to delete attachment: {e}",
                    {"key": key, "document_id": document_id},
                )
            removed.append(key)
        return removed

    async def find_attachment(self, document_id: str) -> Optional[str]:
        """Key of the attachment reported for ``document_id``, if any.

        Costs one prefix-filtered list of the container.
        """
        return select_attachment(document_id, await self._list(companion_prefix(document_id)))

    async def _write_attachment(
        self, document_id: str, file: UploadedFile, created: bool
    ) -> str:
        key = companion_key(document_id, file.filename)
        try:
            await self.store.put(key, file.data)
        except BlobStoreError as e:
            self.logger.error(
                "Failed to upload file", document_id=document_id, key=key, error=str(e)
            )
            rolled_back = False
            if created and self.rollback_on_attachment_failure:
                rolled_back = await self._rollback_primary(document_id)
            raise StorageTransportError(
                f"Failed to upload file: {e}",
                {"document_id": document_id, "key": key, "document_persisted": not rolled_back},
            )
        return key

    async def _rollback_primary(self, document_id: str) -> bool:
        try:
            await self.store.delete(document_id)
        except BlobStoreError as e:
            self.logger.error(
                "Rollback of document after failed file upload failed",
                document_id=document_id,
                error=str(e),
            )
            return False
        self.logger.warning(
            "Rolled back document after failed file upload", document_id=document_id
        )
        return True

    # ========================================
    # OPERATIONS
    # ========================================

    async def create_document(
        self, content: Union[str, bytes], file: Optional[UploadedFile] = None
    ) -> Document:
        document_id = generate_document_id()
        payload = _to_bytes(content)
        await self._put(document_id, payload, "create document")

        attachment_ref = None
        if file is not None:
            attachment_ref = await self._write_attachment(document_id, file, created=True)

        self.logger.info(
            "Document created",
            document_id=document_id,
            size=len(payload),
            attachment=attachment_ref,
        )
        return _assemble(document_id, payload, attachment_ref)

    async def get_document(self, document_id: str) -> Document:
        self._require_document_id(document_id)
        data = await self._get(document_id, "get document")
        return _assemble(document_id, data, await self.find_attachment(document_id))

    async def get_document_text(self, document_id: str) -> str:
        """Primary payload as text; ContentEncodingError when it is binary."""
        self._require_document_id(document_id)
        data = await self._get(document_id, "get document")
        classification = classify(data)
        if classification.is_binary:
            raise ContentEncodingError(
                f"Document {document_id} is not valid {TEXT_ENCODING} text",
                document_id=document_id,
            )
        return classification.text

    async def list_documents(self) -> List[Document]:
        partition = partition_keys(await self._list())

        if partition.orphaned_attachments:
            self.logger.debug(
                "Ignoring attachments without a document",
                count=len(partition.orphaned_attachments),
            )

        results = await asyncio.gather(
            *(self.store.get(key) for key in partition.primary_keys),
            return_exceptions=True,
        )

        documents = []
        for document_id, result in zip(partition.primary_keys, results):
            if isinstance(result, BlobNotFoundError):
                # Deleted between list and get
                self.logger.warning("Document vanished during listing", document_id=document_id)
                continue
            if isinstance(result, BlobStoreError):
                self.logger.error(
                    "Failed to get blob content", document_id=document_id, error=str(result)
                )
                raise StorageTransportError(
                    f"Failed to get blob content: {result}", {"key": document_id}
                )
            if isinstance(result, BaseException):
                raise result

            documents.append(
                _assemble(document_id, result, partition.attachment_for(document_id))
            )

        self.logger.debug("Listed documents", count=len(documents))
        return documents

    async def update_document(
        self, document_id: str, content: Union[str, bytes], file: Optional[UploadedFile] = None
    ) -> Document:
        self._require_document_id(document_id)
        payload = _to_bytes(content)
        await self._put(document_id, payload, "update document")

        if file is not None:
            attachment_ref = await self._write_attachment(document_id, file, created=False)
            replaced = await self._delete_attachments(document_id, keep=attachment_ref)
            if replaced:
                self.logger.info(
                    "Replaced previous attachments", document_id=document_id, removed=replaced
                )
        else:
            attachment_ref = await self.find_attachment(document_id)

        self.logger.info("Document updated", document_id=document_id, attachment=attachment_ref)
        return _assemble(document_id, payload, attachment_ref)

    async def delete_document(self, document_id: str) -> None:
        self._require_document_id(document_id)
        try:
            await self.store.delete(document_id)
        except BlobNotFoundError as e:
            # Attachments left behind by an earlier partial delete still go.
            orphans = await self._delete_attachments(document_id)
            if orphans:
                self.logger.warning(
                    "Removed orphaned attachments", document_id=document_id, removed=orphans
                )
            raise DocumentNotFoundError(
                f"Failed to delete document: {e}", document_id=document_id
            )
        except BlobStoreError as e:
            self.logger.error("Failed to delete document", document_id=document_id, error=str(e))
            raise StorageTransportError(
                f"Failed to delete document: {e}", {"document_id": document_id}
            )

        removed = await self._delete_attachments(document_id)
        self.logger.info("Document deleted", document_id=document_id, attachments=removed)

    async def download(self, key: str) -> DocumentDownload:
        """Raw bytes of any blob, with a ``<key>.txt`` or ``<key>.bin`` filename."""
        data = await self._get(key, "download document")
        classification = classify(data)
        return DocumentDownload(
            key=key,
            data=data,
            filename=f"{key}.{classification.extension}",
            is_binary=classification.is_binary,
        )


def _to_bytes(content: Union[str, bytes]) -> bytes:
    if isinstance(content, str):
        return content.encode(TEXT_ENCODING)
    return bytes(content)


def _assemble(document_id: str, payload: bytes, attachment_ref: Optional[str]) -> Document:
    """External representation; classification is derived from the bytes every time."""
    classification = classify(payload)
    return Document(
        id=document_id,
        content=classification.text,
        attachment_ref=attachment_ref,
        is_binary=classification.is_binary,
    )
