"""
Blob key naming for documents and their attachments.

A document's primary blob is keyed by its id. Its attachment lives at
``<id>_<filename>``. Document ids are UUID4 strings, which never contain
the separator, so the text before the first separator always names the
owning document.
"""

import uuid
from typing import Optional

SEPARATOR = "_"
DEFAULT_FILENAME = "file"


def generate_document_id() -> str:
    """Fresh random document id (UUID4, hyphenated, no separator)."""
    return str(uuid.uuid4())


def companion_key(document_id: str, filename: Optional[str]) -> str:
    """Key of the attachment blob for ``document_id``."""
    return f"{document_id}{SEPARATOR}{filename or DEFAULT_FILENAME}"


def companion_prefix(document_id: str) -> str:
    """Prefix shared by every attachment key of ``document_id``."""
    return f"{document_id}{SEPARATOR}"


def is_companion_key(key: str) -> bool:
    return SEPARATOR in key


def owner_of(key: str) -> str:
    """Document id a key belongs to (the key itself for primary keys)."""
    return key.split(SEPARATOR, 1)[0]


def is_valid_document_id(document_id: str) -> bool:
    return bool(document_id) and not is_companion_key(document_id)
