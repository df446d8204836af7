"""
Abstract base class for storage backends.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Union
from urllib.parse import quote

from storage.keys import parse_key

FileData = Union[bytes, AsyncIterator[bytes]]


@dataclass(frozen=True)
class StoredFile:
    """A stored file as decoded from its physical key."""

    id: str
    filename: str
    key: str
    url: str


@dataclass(frozen=True)
class StoredObject:
    """A stored file together with its content."""

    file: StoredFile
    content: bytes


class StorageBackend(ABC):
    """Abstract base class for storage backends."""

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize storage backend.

        Args:
            config: Backend configuration dictionary
        """
        self.config = config
        self.name = config.get("name", "unknown")

    @abstractmethod
    async def put(self, filename: str, data: FileData) -> StoredFile:
        """
        Store a new file under a freshly generated id.

        Args:
            filename: Original filename supplied by the client
            data: File content as bytes or async iterator of chunks

        Returns:
            The stored file

        Raises:
            InvalidFilenameError: If the filename is unsafe
            StorageUnavailableError: If the medium cannot be written
        """
        pass

    @abstractmethod
    async def list(self) -> List[StoredFile]:
        """
        List files at the top level of the storage location.

        Returns:
            Stored files in backend enumeration order, empty if none
        """
        pass

    @abstractmethod
    async def get(self, file_id: str) -> StoredObject:
        """
        Fetch a file and its content by id.

        Args:
            file_id: Id returned by :meth:`put`

        Returns:
            The stored object

        Raises:
            NotFoundError: If no object exists for the id
        """
        pass

    @abstractmethod
    async def delete(self, file_id: str) -> bool:
        """
        Delete a file by id.

        Args:
            file_id: Id returned by :meth:`put`

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    def url_for(self, key: str) -> str:
        """Build the retrieval URL for a physical key."""
        pass

    def describe(self, key: str) -> StoredFile:
        """Decode a physical key into a :class:`StoredFile`."""
        file_id, filename = parse_key(key)
        return StoredFile(id=file_id, filename=filename, key=key, url=self.url_for(key))

    @staticmethod
    def quote_key(key: str) -> str:
        """Percent-encode a key for use as a single URL path segment."""
        return quote(key, safe="")

    async def get_status(self) -> Dict[str, Any]:
        """
        Get backend status.

        Returns:
            Dictionary with backend status information
        """
        return {
            "name": self.name,
            "type": self.__class__.__name__,
            "available": True,
        }

    async def cleanup(self) -> None:
        """Clean up backend resources."""
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name}>"
