"""Blob store capability interface and its in-memory implementation.

Every backend exposes the same coroutine API over a flat key namespace
scoped to a single container:

- put(key, data)        overwrite-or-create
- get(key) -> bytes     raises BlobNotFoundError when the key is absent
- delete(key)           raises BlobNotFoundError when the key is absent
- list(prefix) -> keys  exhaustive, unordered
- ensure_container()    create the container when missing

No call is retried; a failure surfaces as BlobStoreError immediately.
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from doc_manager.core.logging import get_service_logger


class BlobStoreError(Exception):
    """Base exception for blob store failures."""

    pass


class BlobNotFoundError(BlobStoreError):
    """Blob not found error."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Blob not found: {key}")


class BlobStore(ABC):
    """Async key/bytes store over one container."""

    backend_name = "abstract"

    @abstractmethod
    async def put(self, key: str, data: bytes) -> None: ...

    @abstractmethod
    async def get(self, key: str) -> bytes: ...

    @abstractmethod
    async def delete(self, key: str) -> None: ...

    @abstractmethod
    async def list(self, prefix: Optional[str] = None) -> List[str]: ...

    @abstractmethod
    async def ensure_container(self) -> bool:
        """Create the container if needed. Returns True when it was created."""

    async def exists(self, key: str) -> bool:
        try:
            await self.get(key)
        except BlobNotFoundError:
            return False
        return True

    async def health_check(self) -> bool:
        """Check the container is reachable."""
        return True


class ThreadedBlobStore(BlobStore):
    """Base for SDK-backed stores whose clients are synchronous.

    Subclasses implement the blocking ``*_sync`` methods; the coroutine API
    runs them in the default thread pool.
    """

    @abstractmethod
    def upload_sync(self, key: str, data: bytes) -> None: ...

    @abstractmethod
    def download_sync(self, key: str) -> bytes: ...

    @abstractmethod
    def delete_sync(self, key: str) -> None: ...

    @abstractmethod
    def list_sync(self, prefix: Optional[str] = None) -> List[str]: ...

    @abstractmethod
    def ensure_container_sync(self) -> bool: ...

    @abstractmethod
    def container_exists_sync(self) -> bool: ...

    async def health_check(self) -> bool:
        try:
            return await asyncio.to_thread(self.container_exists_sync)
        except BlobStoreError as e:
            self.logger.error("Blob store health check failed", error=str(e))
            return False

    async def put(self, key: str, data: bytes) -> None:
        await asyncio.to_thread(self.upload_sync, key, data)

    async def get(self, key: str) -> bytes:
        return await asyncio.to_thread(self.download_sync, key)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self.delete_sync, key)

    async def list(self, prefix: Optional[str] = None) -> List[str]:
        return await asyncio.to_thread(self.list_sync, prefix)

    async def ensure_container(self) -> bool:
        return await asyncio.to_thread(self.ensure_container_sync)


class InMemoryBlobStore(BlobStore):
    """Process-local store guarded by a lock.

    The lock is held only while the mapping is read or written.
    """

    backend_name = "memory"

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self.logger = get_service_logger("memory_store")
        self._blobs: Dict[str, bytes] = dict(initial or {})
        self._lock = threading.Lock()

    async def put(self, key: str, data: bytes) -> None:
        with self._lock:
            self._blobs[key] = bytes(data)
        self.logger.debug("Stored blob", key=key, size=len(data))

    async def get(self, key: str) -> bytes:
        with self._lock:
            data = self._blobs.get(key)
        if data is None:
            raise BlobNotFoundError(key)
        return data

    async def delete(self, key: str) -> None:
        with self._lock:
            removed = self._blobs.pop(key, None)
        if removed is None:
            raise BlobNotFoundError(key)
        self.logger.debug("Deleted blob", key=key)

    async def list(self, prefix: Optional[str] = None) -> List[str]:
        with self._lock:
            keys = list(self._blobs)
        if prefix:
            keys = [key for key in keys if key.startswith(prefix)]
        return keys

    async def ensure_container(self) -> bool:
        return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)


def build_blob_store(settings) -> BlobStore:
    """Construct the blob store selected by ``settings.STORAGE_BACKEND``."""
    backend = settings.STORAGE_BACKEND
    if backend == "memory":
        return InMemoryBlobStore()
    if backend == "gcs":
        from doc_manager.core.gcs_client import GCSBlobStore

        return GCSBlobStore(
            project_id=settings.GCP_PROJECT_ID,
            bucket_name=settings.BLOB_CONTAINER_NAME,
            credentials_path=settings.GOOGLE_APPLICATION_CREDENTIALS,
        )
    if backend == "azure":
        from doc_manager.core.azure_client import AzureBlobStore

        return AzureBlobStore(
            account_url=settings.azure_account_url,
            account_name=settings.AZURE_STORAGE_ACCOUNT,
            access_key=settings.AZURE_STORAGE_ACCESS_KEY,
            container_name=settings.BLOB_CONTAINER_NAME,
        )
    from doc_manager.core.config import ConfigurationError

    raise ConfigurationError(f"Unsupported storage backend: {backend}")
