"""Azure Blob Storage adapter."""

from typing import List, Optional

from azure.core.credentials import AzureNamedKeyCredential
from azure.core.exceptions import (
    AzureError,
    ResourceExistsError,
    ResourceNotFoundError,
)
from azure.storage.blob import BlobServiceClient, ContainerClient

from doc_manager.core.blob_store import (
    BlobNotFoundError,
    BlobStoreError,
    ThreadedBlobStore,
)
from doc_manager.core.logging import get_service_logger

logger = get_service_logger("azure_client")


class AzureBlobStore(ThreadedBlobStore):
    """Blob store backed by one Azure Blob Storage container."""

    backend_name = "azure"

    def __init__(
        self,
        account_url: str,
        account_name: str,
        access_key: str,
        container_name: str,
        container_client: Optional[ContainerClient] = None,
    ):
        self.logger = logger
        self._container_name = container_name

        if container_client is None:
            service = BlobServiceClient(
                account_url=account_url,
                credential=AzureNamedKeyCredential(account_name, access_key),
            )
            container_client = service.get_container_client(container_name)
        self._container_client = container_client

    @property
    def container_client(self) -> ContainerClient:
        return self._container_client

    def container_exists_sync(self) -> bool:
        try:
            return self._container_client.exists()
        except AzureError as e:
            raise BlobStoreError(f"Failed to access blob container: {e}")

    def ensure_container_sync(self) -> bool:
        if self.container_exists_sync():
            self.logger.info("Container already exists", container=self._container_name)
            return False

        self.logger.info("Container does not exist, creating", container=self._container_name)
        try:
            self._container_client.create_container()
        except ResourceExistsError:
            # Created concurrently by another process
            return False
        except AzureError as e:
            self.logger.error(
                "Failed to create container", container=self._container_name, error=str(e)
            )
            raise BlobStoreError(f"Failed to create container: {e}")
        return True

    def upload_sync(self, key: str, data: bytes) -> None:
        blob = self._container_client.get_blob_client(key)
        try:
            blob.upload_blob(data, overwrite=True)
        except AzureError as e:
            self.logger.error("Failed to upload blob", key=key, error=str(e))
            raise BlobStoreError(f"Failed to upload blob: {e}")

        self.logger.info("Uploaded blob", key=key, size=len(data))

    def download_sync(self, key: str) -> bytes:
        blob = self._container_client.get_blob_client(key)
        try:
            content = blob.download_blob().readall()
        except ResourceNotFoundError:
            raise BlobNotFoundError(key)
        except AzureError as e:
            self.logger.error("Failed to download blob", key=key, error=str(e))
            raise BlobStoreError(f"Failed to download blob: {e}")

        self.logger.debug("Downloaded blob", key=key, size=len(content))
        return content

    def delete_sync(self, key: str) -> None:
        blob = self._container_client.get_blob_client(key)
        try:
            blob.delete_blob()
        except ResourceNotFoundError:
            raise BlobNotFoundError(key)
        except AzureError as e:
            self.logger.error("Failed to delete blob", key=key, error=str(e))
            raise BlobStoreError(f"Failed to delete blob: {e}")

        self.logger.info("Deleted blob", key=key)

    def list_sync(self, prefix: Optional[str] = None) -> List[str]:
        # ItemPaged follows continuation tokens across every page
        try:
            names = [
                blob.name
                for blob in self._container_client.list_blobs(name_starts_with=prefix)
            ]
        except AzureError as e:
            self.logger.error("Failed to list blobs", prefix=prefix, error=str(e))
            raise BlobStoreError(f"Failed to list blobs: {e}")

        self.logger.debug("Listed blobs", prefix=prefix, count=len(names))
        return names


__all__ = ["AzureBlobStore"]
