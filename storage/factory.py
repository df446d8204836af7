"""
Factory for creating storage backends.
"""
from typing import Any, Dict

from storage.base import StorageBackend


def create_storage_backend(config: Dict[str, Any]) -> StorageBackend:
    """
    Create a storage backend from configuration.

    Args:
        config: Backend configuration dictionary with at least:
            - type: Backend type (filesystem, gcs)
            - name: Backend name for identification

    Returns:
        Configured StorageBackend instance

    Raises:
        ValueError: If backend type is unknown or config is invalid
    """
    backend_type = config.get("type", "").lower()

    if not backend_type:
        raise ValueError("Backend configuration must include 'type'")

    if backend_type in ("filesystem", "local", "file"):
        from storage.local import LocalStorageBackend
        return LocalStorageBackend(config)

    elif backend_type in ("gcs", "gcp", "google", "google_cloud"):
        from storage.gcs import GCSStorageBackend
        return GCSStorageBackend(config)

    else:
        raise ValueError(f"Unknown storage backend type: {backend_type}")
