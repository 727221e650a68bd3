"""Error taxonomy for the upload pipeline.

Each error carries the HTTP status and machine-readable code it maps to. The
``message`` is what the client sees; the chained cause stays in the server log.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class TubelyError(Exception):
    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(TubelyError):
    status_code = 400
    error_code = "INVALID_INPUT"


class UnsupportedMediaTypeError(InvalidInputError):
    status_code = 415
    error_code = "UNSUPPORTED_MEDIA_TYPE"


class AuthError(TubelyError):
    status_code = 401
    error_code = "UNAUTHORIZED"


class NotFoundError(TubelyError):
    status_code = 404
    error_code = "NOT_FOUND"


class PayloadTooLargeError(TubelyError):
    status_code = 413
    error_code = "FILE_TOO_LARGE"


class FileIOError(TubelyError):
    error_code = "IO_ERROR"


class ProcessError(TubelyError):
    error_code = "PROCESS_FAILED"


class ParseError(TubelyError):
    error_code = "PARSE_FAILED"


class DataError(TubelyError):
    error_code = "BAD_MEDIA_DATA"


class UploadError(TubelyError):
    error_code = "UPLOAD_FAILED"


class PersistError(TubelyError):
    error_code = "PERSIST_FAILED"


def _error(status: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error_code": code, "message": message})


async def tubely_error_handler(request: Request, exc: TubelyError) -> JSONResponse:
    cause = exc.__cause__
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s (%s)", request.method, request.url.path, exc.message, cause,
            exc_info=cause is not None,
        )
    else:
        logger.warning("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, cause)
    return _error(exc.status_code, exc.error_code, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.errors())
    return _error(400, InvalidInputError.error_code, "Invalid request parameters")
