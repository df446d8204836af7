"""
Exception handlers rendering every failure as ``{"error": <message>}``.
"""
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from storage.exceptions import EmptyInputError, StorageError

logger = structlog.get_logger()


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the standard error body."""
    return JSONResponse(status_code=status_code, content={"error": message})


async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Map storage errors to their HTTP status."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Storage error",
        error_type=type(exc).__name__,
        message=exc.message,
        method=request.method,
        path=request.url.path,
    )
    return error_response(exc.status_code, exc.message)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed requests are client errors."""
    errors = exc.errors()
    if any(tuple(error.get("loc", ())) == ("body", "file") for error in errors):
        # A file part without a usable file is the same as no upload
        message = EmptyInputError("empty file").message
    elif errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"{location}: {first.get('msg', 'invalid')}" if location else first.get("msg", "invalid")
    else:
        message = "invalid request"
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP exceptions with the standard error body."""
    detail = exc.detail
    if isinstance(detail, dict):
        detail = detail.get("message") or detail.get("error") or str(detail)
    response = error_response(exc.status_code, str(detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for unexpected errors."""
    logger.exception(
        "Unhandled error",
        method=request.method,
        path=request.url.path,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal server error")
