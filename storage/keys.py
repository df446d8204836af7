"""
Physical key scheme for stored files.

A stored object's key is ``<uuid>__<filename>``. The id is everything before
the first separator, so the key alone is enough to recover both parts.
"""
import unicodedata
from typing import Tuple
from uuid import UUID, uuid4

from storage.exceptions import InvalidFilenameError

SEPARATOR = "__"

# Leaves room for the 36 character id and separator under the 255 byte
# filename limit of common filesystems.
MAX_FILENAME_BYTES = 200


def new_file_id() -> str:
    """Generate a fresh file id."""
    return str(uuid4())


def build_key(file_id: str, filename: str) -> str:
    """Build the physical key for a file id and filename."""
    return f"{file_id}{SEPARATOR}{filename}"


def parse_key(key: str) -> Tuple[str, str]:
    """
    Split a physical key into ``(file_id, filename)``.

    Keys without a separator (objects not written by this service) decode
    to ``(key, key)``.
    """
    idx = key.find(SEPARATOR)
    if idx > 0:
        return key[:idx], key[idx + len(SEPARATOR):]
    return key, key


def lookup_prefix(file_id: str) -> str:
    """Key prefix shared by every object stored under ``file_id``."""
    return f"{file_id}{SEPARATOR}"


def is_valid_file_id(value: str) -> bool:
    """Check that ``value`` is a canonical UUID string."""
    try:
        return str(UUID(value)) == value.lower()
    except (ValueError, AttributeError, TypeError):
        return False


def sanitize_filename(filename: str) -> str:
    """
    Reduce a client supplied filename to a single safe path segment.

    Backslashes count as path separators, directory components are dropped
    and any ``..`` segment rejects the name outright.

    Raises:
        InvalidFilenameError: If nothing usable remains or the name is unsafe
    """
    if filename is None or not filename.strip():
        raise InvalidFilenameError("filename is required")

    for char in filename:
        if char == "\x00" or unicodedata.category(char) == "Cc":
            raise InvalidFilenameError("filename contains control characters")

    segments = filename.replace("\\", "/").split("/")
    if ".." in (segment.strip() for segment in segments):
        raise InvalidFilenameError("filename must not contain '..' segments")

    parts = [segment for segment in segments if segment.strip() not in ("", ".")]
    if not parts:
        raise InvalidFilenameError("filename is required")

    cleaned = parts[-1].strip()
    if len(cleaned.encode("utf-8")) > MAX_FILENAME_BYTES:
        raise InvalidFilenameError(
            f"filename exceeds {MAX_FILENAME_BYTES} bytes"
        )

    return cleaned
