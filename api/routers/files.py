"""
Files endpoint - upload, list, retrieve and delete stored media files.

The router only validates input and shapes responses; every storage
decision belongs to the injected backend.
"""
import unicodedata
from typing import Annotated, AsyncIterator, List, Optional
from urllib.parse import quote

from fastapi import APIRouter, File, Request, Response, UploadFile, status
from annotated_doc import Doc
import structlog

from api.dependencies import Storage
from api.models.file import ErrorResponse, FileResponse
from api.utils.metrics import record_operation
from api.utils.validators import validate_file_ref, validate_upload_filename
from storage.base import StoredFile
from storage.exceptions import EmptyInputError, NotFoundError, StorageError

logger = structlog.get_logger()

router = APIRouter()

UPLOAD_CHUNK_SIZE = 64 * 1024

FileRef = Annotated[
    str,
    Doc("File id, or the full stored key as found in a file URL")
]


def _absolute_url(request: Request, url: str) -> str:
    """Prefix relative retrieval paths with the request's base URL."""
    if url.startswith("/"):
        return str(request.base_url).rstrip("/") + url
    return url


def _to_response(request: Request, stored: StoredFile) -> FileResponse:
    return FileResponse(
        id=stored.id,
        filename=stored.filename,
        url=_absolute_url(request, stored.url),
    )


def _quoted_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def content_disposition(filename: str) -> str:
    """
    Inline disposition header.

    Non-ASCII names carry an ASCII ``filename`` fallback plus the RFC 5987
    ``filename*`` form.
    """
    if filename.isascii():
        return f"inline; filename={_quoted_string(filename)}"

    fallback = (
        unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
        or "download"
    )
    return (
        f"inline; filename={_quoted_string(fallback)}; "
        f"filename*=utf-8''{quote(filename, safe='')}"
    )


async def _iter_upload(first_chunk: bytes, file: UploadFile) -> AsyncIterator[bytes]:
    yield first_chunk
    while True:
        chunk = await file.read(UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


@router.post(
    "/files",
    response_model=FileResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload a file",
    description="Store a file sent as the multipart form field `file`.",
    responses={
        400: {"model": ErrorResponse, "description": "Missing, empty or badly named file"},
        500: {"model": ErrorResponse, "description": "Storage write failed"},
    },
)
async def upload_file(
    request: Request,
    storage: Storage,
    file: Annotated[
        Optional[UploadFile],
        File(description="File to upload"),
        Doc("Multipart file part")
    ] = None,
) -> FileResponse:
    """
    Upload a file.

    The file is stored under a new id; the response carries the id, the
    sanitized filename and a retrieval URL.
    """
    try:
        filename = validate_upload_filename(file)
        first_chunk = await file.read(UPLOAD_CHUNK_SIZE)
        if not first_chunk:
            raise EmptyInputError("empty file")

        stored = await storage.put(filename, _iter_upload(first_chunk, file))
    except StorageError:
        record_operation("upload", "error")
        raise
    finally:
        if file is not None:
            await file.close()

    record_operation("upload", "success")
    logger.info("File uploaded", file_id=stored.id, filename=stored.filename)
    return _to_response(request, stored)


@router.get(
    "/files",
    response_model=List[FileResponse],
    status_code=status.HTTP_200_OK,
    summary="List files",
    description="List every stored file. Order is not guaranteed.",
)
async def list_files(
    request: Request,
    storage: Storage,
) -> List[FileResponse]:
    """List stored files."""
    files = await storage.list()
    record_operation("list", "success")
    return [_to_response(request, stored) for stored in files]


@router.get(
    "/files/{file_ref}",
    status_code=status.HTTP_200_OK,
    summary="Retrieve a file",
    description="Return the raw content of a stored file.",
    response_class=Response,
    responses={
        200: {"content": {"application/octet-stream": {}}, "description": "File content"},
        404: {"model": ErrorResponse, "description": "File not found"},
    },
)
async def get_file(
    file_ref: FileRef,
    storage: Storage,
) -> Response:
    """Retrieve a file's content by id."""
    try:
        file_id = validate_file_ref(file_ref)
        stored = await storage.get(file_id)
    except StorageError:
        record_operation("retrieve", "error")
        raise

    record_operation("retrieve", "success")
    return Response(
        content=stored.content,
        media_type="application/octet-stream",
        headers={"Content-Disposition": content_disposition(stored.file.filename)},
    )


@router.delete(
    "/files/{file_ref}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a file",
    response_class=Response,
    responses={
        404: {"model": ErrorResponse, "description": "File not found"},
    },
)
async def delete_file(
    file_ref: FileRef,
    storage: Storage,
) -> Response:
    """Delete a file by id."""
    try:
        file_id = validate_file_ref(file_ref)
        if not await storage.delete(file_id):
            raise NotFoundError("file not found")
    except StorageError:
        record_operation("delete", "error")
        raise

    record_operation("delete", "success")
    logger.info("File deleted", file_id=file_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
