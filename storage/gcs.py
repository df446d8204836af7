"""
Google Cloud Storage backend.

Uses Application Default Credentials. The client library is synchronous, so
every call runs in a worker thread.
"""
import asyncio
import threading
from typing import Any, Dict, List, Optional

import structlog
from google.api_core import exceptions as gcs_exceptions
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage

from storage.base import FileData, StorageBackend, StoredFile, StoredObject
from storage.exceptions import NotFoundError, StorageUnavailableError
from storage.keys import build_key, lookup_prefix, new_file_id, sanitize_filename

logger = structlog.get_logger()

PUBLIC_URL_BASE = "https://storage.googleapis.com"
CONTENT_TYPE = "application/octet-stream"

# Failures that mean the bucket could not be reached or used
UNAVAILABLE_ERRORS = (gcs_exceptions.GoogleAPIError, GoogleAuthError, OSError)


class GCSStorageBackend(StorageBackend):
    """Google Cloud Storage backend."""

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize GCS storage backend.

        Args:
            config: Configuration with:
                - bucket: GCS bucket name
                - project: GCP project ID (optional)
        """
        super().__init__(config)
        self.bucket = config.get("bucket")
        self.project = config.get("project")

        if not self.bucket:
            raise ValueError("GCS backend requires 'bucket' in configuration")

        self._client: Optional[storage.Client] = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> storage.Client:
        """Get or create the GCS client."""
        # Called from worker threads; only one client may ever be built
        with self._client_lock:
            if self._client is None:
                self._client = storage.Client(project=self.project)
            return self._client

    def url_for(self, key: str) -> str:
        return f"{PUBLIC_URL_BASE}/{self.bucket}/{self.quote_key(key)}"

    def _list_blobs(self, prefix: Optional[str] = None, max_results: Optional[int] = None):
        # The delimiter keeps the listing to the top level of the bucket
        blobs = self._get_client().list_blobs(
            self.bucket,
            prefix=prefix,
            delimiter="/",
            max_results=max_results,
        )
        return [blob for blob in blobs]

    def _find(self, file_id: str):
        blobs = self._list_blobs(prefix=lookup_prefix(file_id), max_results=1)
        return blobs[0] if blobs else None

    def _upload(self, key: str, content: bytes) -> None:
        blob = self._get_client().bucket(self.bucket).blob(key)
        blob.upload_from_string(content, content_type=CONTENT_TYPE)

    async def put(self, filename: str, data: FileData) -> StoredFile:
        """Upload data to a new object."""
        filename = sanitize_filename(filename)
        file_id = new_file_id()
        key = build_key(file_id, filename)

        # Collect data if it's an iterator
        if isinstance(data, bytes):
            content = data
        else:
            chunks = []
            async for chunk in data:
                chunks.append(chunk)
            content = b"".join(chunks)

        try:
            await asyncio.to_thread(self._upload, key, content)
        except UNAVAILABLE_ERRORS as e:
            logger.error("Failed to upload object", bucket=self.bucket, key=key, error=str(e))
            raise StorageUnavailableError("failed to store file") from e

        logger.info("Stored object", bucket=self.bucket, file_id=file_id, key=key, size=len(content))
        return self.describe(key)

    async def list(self) -> List[StoredFile]:
        """List objects at the top level of the bucket."""
        try:
            blobs = await asyncio.to_thread(self._list_blobs)
        except gcs_exceptions.NotFound:
            # Missing bucket behaves like an empty one
            return []
        except UNAVAILABLE_ERRORS as e:
            logger.error("Failed to list objects", bucket=self.bucket, error=str(e))
            raise StorageUnavailableError("failed to list files") from e

        return [self.describe(blob.name) for blob in blobs]

    async def get(self, file_id: str) -> StoredObject:
        """Download an object by file id."""
        try:
            blob = await asyncio.to_thread(self._find, file_id)
            if blob is None:
                raise NotFoundError("file not found")
            content = await asyncio.to_thread(blob.download_as_bytes)
        except gcs_exceptions.NotFound as e:
            raise NotFoundError("file not found") from e
        except UNAVAILABLE_ERRORS as e:
            logger.error("Failed to download object", bucket=self.bucket, file_id=file_id, error=str(e))
            raise StorageUnavailableError("failed to read file") from e

        return StoredObject(file=self.describe(blob.name), content=content)

    async def delete(self, file_id: str) -> bool:
        """Delete an object by file id."""
        try:
            blob = await asyncio.to_thread(self._find, file_id)
            if blob is None:
                return False
            await asyncio.to_thread(blob.delete)
        except gcs_exceptions.NotFound:
            return False
        except UNAVAILABLE_ERRORS as e:
            logger.error("Failed to delete object", bucket=self.bucket, file_id=file_id, error=str(e))
            raise StorageUnavailableError("failed to delete file") from e

        logger.info("Deleted object", bucket=self.bucket, file_id=file_id, key=blob.name)
        return True

    async def get_status(self) -> Dict[str, Any]:
        """Get backend status."""
        try:
            await asyncio.to_thread(self._list_blobs, None, 1)
            available = True
        except UNAVAILABLE_ERRORS:
            available = False

        return {
            "name": self.name,
            "type": "gcs",
            "bucket": self.bucket,
            "project": self.project,
            "available": available,
        }

    async def cleanup(self) -> None:
        """Close the GCS client."""
        with self._client_lock:
            client, self._client = self._client, None
        if client is not None:
            client.close()
