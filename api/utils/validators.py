"""
Request validation for the files API.
"""
from typing import Optional

from fastapi import UploadFile

from storage.exceptions import EmptyInputError, NotFoundError
from storage.keys import is_valid_file_id, parse_key, sanitize_filename


def validate_upload_filename(file: Optional[UploadFile]) -> str:
    """
    Check an upload part and return its sanitized filename.

    Raises:
        EmptyInputError: If no file part was sent
        InvalidFilenameError: If the filename is unsafe
    """
    if file is None:
        raise EmptyInputError("empty file")
    return sanitize_filename(file.filename or "")


def validate_file_ref(file_ref: str) -> str:
    """
    Resolve a path reference to a file id.

    Accepts either a bare id or a full physical key as carried in retrieval
    URLs. References whose id part is not a UUID cannot exist and are
    reported as not found without touching storage.
    """
    file_id, _ = parse_key(file_ref)
    if not is_valid_file_id(file_id):
        raise NotFoundError("file not found")
    return file_id
