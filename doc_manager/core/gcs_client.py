import os
from typing import Optional, List

from google.cloud import storage
from google.cloud.storage import Bucket
from google.auth.exceptions import DefaultCredentialsError, GoogleAuthError
from google.api_core.exceptions import GoogleAPIError, NotFound

from doc_manager.core.blob_store import (
    BlobNotFoundError,
    BlobStoreError,
    ThreadedBlobStore,
)
from doc_manager.core.logging import get_service_logger

logger = get_service_logger("gcs_client")

# Credential refresh and transport failures come from google.auth, not api_core
GCS_ERRORS = (GoogleAPIError, GoogleAuthError)


class GCSBlobStore(ThreadedBlobStore):
    """Blob store backed by a single Google Cloud Storage bucket."""

    backend_name = "gcs"

    def __init__(
        self,
        project_id: str,
        bucket_name: str,
        credentials_path: Optional[str] = None,
        client: Optional[storage.Client] = None,
    ):
        self.logger = logger
        self._bucket_name = bucket_name

        if credentials_path:
            os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = credentials_path

        try:
            self._client = client or storage.Client(project=project_id)
        except DefaultCredentialsError as e:
            self.logger.error("GCS authentication failed", error=str(e))
            raise BlobStoreError(f"GCS authentication failed: {e}")

        self._bucket: Bucket = self._client.bucket(bucket_name)

    @property
    def bucket(self) -> Bucket:
        """Get the GCS bucket instance."""
        return self._bucket

    def container_exists_sync(self) -> bool:
        try:
            return self.bucket.exists()
        except GCS_ERRORS as e:
            raise BlobStoreError(f"Failed to check bucket: {e}")

    def ensure_container_sync(self) -> bool:
        if self.container_exists_sync():
            self.logger.info("Connected to GCS bucket", bucket=self._bucket_name)
            return False

        self.logger.info("GCS bucket does not exist, creating", bucket=self._bucket_name)
        try:
            self._bucket = self._client.create_bucket(self._bucket_name)
        except GCS_ERRORS as e:
            self.logger.error(
                "Failed to create GCS bucket", bucket=self._bucket_name, error=str(e)
            )
            raise BlobStoreError(f"Failed to create bucket: {e}")
        return True

    def upload_sync(self, key: str, data: bytes) -> None:
        try:
            self.bucket.blob(key).upload_from_string(data)
        except GCS_ERRORS as e:
            self.logger.error("Failed to upload blob to GCS", key=key, error=str(e))
            raise BlobStoreError(f"Failed to upload blob: {e}")

        self.logger.info("Uploaded blob to GCS", key=key, size=len(data))

    def download_sync(self, key: str) -> bytes:
        try:
            content = self.bucket.blob(key).download_as_bytes()
        except NotFound:
            raise BlobNotFoundError(key)
        except GCS_ERRORS as e:
            self.logger.error("Failed to download blob from GCS", key=key, error=str(e))
            raise BlobStoreError(f"Failed to download blob: {e}")

        self.logger.debug("Downloaded blob from GCS", key=key, size=len(content))
        return content

    def delete_sync(self, key: str) -> None:
        try:
            self.bucket.blob(key).delete()
        except NotFound:
            raise BlobNotFoundError(key)
        except GCS_ERRORS as e:
            self.logger.error("Failed to delete blob from GCS", key=key, error=str(e))
            raise BlobStoreError(f"Failed to delete blob: {e}")

        self.logger.info("Deleted blob from GCS", key=key)

    def list_sync(self, prefix: Optional[str] = None) -> List[str]:
        # The iterator pages through the whole bucket on its own
        try:
            names = [blob.name for blob in self._client.list_blobs(self.bucket, prefix=prefix)]
        except GCS_ERRORS as e:
            self.logger.error("Failed to list GCS blobs", prefix=prefix, error=str(e))
            raise BlobStoreError(f"Failed to list blobs: {e}")

        self.logger.debug("Listed GCS blobs", prefix=prefix, count=len(names))
        return names
