"""
Error taxonomy

Every failure a handler can report is one of these classes. They carry the
HTTP status and the public message; `register_exception_handlers` turns
them into JSON bodies on the app.
"""

import logging
import traceback
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import config

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    message = "Server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def body(self) -> dict:
        return {"message": self.message}


class ValidationFailed(AppError):
    status_code = 400
    message = "Validation failed"

    def __init__(self, errors: List[str]):
        super().__init__()
        self.errors = list(errors)

    def body(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class FileRequired(AppError):
    status_code = 400
    message = "File required"


class AuthorizationError(AppError):
    status_code = 403
    message = "Unauthorized"


class NotFoundError(AppError):
    status_code = 404
    message = "Not found"


class UploadRejected(AppError):
    status_code = 400
    message = "Only image and video files are allowed"


class UploadTooLarge(UploadRejected):
    status_code = 413
    message = "File too large"


class ConflictError(AppError):
    status_code = 409
    message = "Slug already exists"


class UpstreamFailure(AppError):
    """The asset host or the database failed; `detail` is hidden in production."""

    status_code = 502
    message = "Server error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None, status_code: int = 502):
        super().__init__(message)
        self.detail = detail
        self.status_code = status_code

    def body(self) -> dict:
        body = {"message": self.message}
        if self.detail and not config.IS_PRODUCTION:
            body["error"] = self.detail
        return body


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.body())


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"message": "Route not found"})
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=getattr(exc, "headers", None))


async def database_error_handler(request: Request, exc: PyMongoError):
    logger.error("Database error in %s %s", request.method, request.url.path, exc_info=exc)
    failure = UpstreamFailure("Database unavailable", detail=str(exc), status_code=503)
    return JSONResponse(status_code=failure.status_code, content=failure.body())


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error in %s %s", request.method, request.url.path, exc_info=exc)
    if config.IS_PRODUCTION:
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc),
            "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(PyMongoError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
