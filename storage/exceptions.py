"""
Exceptions raised by storage backends and the files API.

Each error carries the HTTP status it maps to so the API layer can render it
without a lookup table.
"""


class StorageError(Exception):
    """Base class for media storage errors."""

    status_code = 500

    def __init__(self, message: str = "storage error"):
        super().__init__(message)
        self.message = message


class EmptyInputError(StorageError):
    """Upload carried no file content."""

    status_code = 400


class InvalidFilenameError(StorageError):
    """Filename is unusable or attempts path traversal."""

    status_code = 400


class NotFoundError(StorageError):
    """No stored object matches the requested id."""

    status_code = 404


class StorageUnavailableError(StorageError):
    """The storage medium could not be read or written."""

    status_code = 500
