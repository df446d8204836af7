"""
Storage module for media files.

Supports a local filesystem directory and a Google Cloud Storage bucket.
"""
from storage.base import StorageBackend, StoredFile, StoredObject
from storage.factory import create_storage_backend

__all__ = ["StorageBackend", "StoredFile", "StoredObject", "create_storage_backend"]
