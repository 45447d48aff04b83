# errors.py
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base error carrying an HTTP status, a stable code and the client-facing message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "server_error"
    default_message = "Server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "bad_request"
    default_message = "Permintaan tidak valid"


class InvalidCredentials(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_credentials"
    default_message = "Username atau password tidak valid"


class Conflict(AppError):
    # The client expects 400 for duplicate registrations
    status_code = status.HTTP_400_BAD_REQUEST
    code = "conflict"
    default_message = "Data sudah terdaftar"


class DeadlineExceeded(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "deadline_exceeded"
    default_message = "Batas waktu pengumpulan sudah berakhir"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_message = "Akses ditolak"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Data tidak ditemukan"


class ServerError(AppError):
    pass


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "code": exc.code},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": BadRequest.default_message,
            "code": BadRequest.code,
            "errors": jsonable_encoder(exc.errors()),
        },
    )


HTTP_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: BadRequest.code,
    status.HTTP_403_FORBIDDEN: Forbidden.code,
    status.HTTP_404_NOT_FOUND: NotFound.code,
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
}


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Framework errors (unknown route, wrong method) in the same body as ours."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail, "code": HTTP_ERROR_CODES.get(exc.status_code, "http_error")},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": ServerError.default_message, "code": ServerError.code},
    )


def register_exception_handlers(app):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
