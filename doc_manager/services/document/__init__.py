"""
Document services package.

- key_naming: blob keys for documents and their attachments
- content_classifier: text/binary classification of payloads
- document_listing: partitioning of the blob namespace into documents
- document_repository: CRUD and download operations (main interface)
"""

from .document_repository import DocumentRepository

__all__ = [
    "DocumentRepository",
]
