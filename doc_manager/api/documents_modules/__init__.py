"""
Document API modules.

Modules:
- document_upload: create and update (multipart content + optional file)
- document_management: list, get, raw text, delete
- document_download: raw byte download of documents and attachments
- common: Shared utilities and dependencies
"""

__all__ = []
