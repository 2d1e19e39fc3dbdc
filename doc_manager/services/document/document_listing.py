"""
Document Listing - reconstructs documents from a flat blob namespace.

One ``list()`` of the container is partitioned into primary keys (document
ids) and companion keys (attachments). Each primary key is paired with the
lexicographically smallest companion key it owns, so the same attachment is
always reported for the same id. Companion keys are never emitted as
documents, including orphans whose primary blob is gone.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .key_naming import is_companion_key, owner_of


@dataclass
class NamespacePartition:
    """Keys of a container split by role."""

    primary_keys: List[str] = field(default_factory=list)
    attachments: Dict[str, List[str]] = field(default_factory=dict)

    def attachment_for(self, document_id: str) -> Optional[str]:
        keys = self.attachments.get(document_id)
        return keys[0] if keys else None

    @property
    def orphaned_attachments(self) -> List[str]:
        primaries = set(self.primary_keys)
        return sorted(
            key
            for owner, keys in self.attachments.items()
            if owner not in primaries
            for key in keys
        )


def partition_keys(keys: Iterable[str]) -> NamespacePartition:
    """Split ``keys`` into primary keys and per-owner companion keys."""
    partition = NamespacePartition()
    for key in sorted(set(keys)):
        if is_companion_key(key):
            partition.attachments.setdefault(owner_of(key), []).append(key)
        else:
            partition.primary_keys.append(key)
    return partition


def select_attachment(document_id: str, keys: Iterable[str]) -> Optional[str]:
    """The companion key reported for ``document_id`` among ``keys``."""
    return partition_keys(keys).attachment_for(document_id)
