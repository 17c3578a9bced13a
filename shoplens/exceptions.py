import asyncio
import logging
from contextlib import contextmanager

import asyncpg
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

logger = logging.getLogger(__name__)


class ShopLensException(Exception):
    """Base exception for the application"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgumentError(ShopLensException):
    status_code = 400


class NotFoundError(ShopLensException):
    status_code = 404


class InternalError(ShopLensException):
    status_code = 500


class CompletionServiceError(ShopLensException):
    """The external text-completion API failed or returned garbage"""
    status_code = 502


STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


@contextmanager
def store_errors(action: str):
    """
    Translate failures of a store round trip into InternalError.
    """
    try:
        yield
    except STORE_ERRORS as exc:
        logger.error(f"Store operation failed: {action}", extra={"action": action, "error": repr(exc)})
        raise InternalError(f"Failed to {action}") from exc


async def shoplens_exception_handler(request: Request, exc: ShopLensException):
    request_id = getattr(request.state, "request_id", "unknown")

    if exc.status_code >= 500:
        logger.error(exc.message, extra={"request_id": request_id, "path": request.url.path})
    else:
        logger.info(exc.message, extra={"request_id": request_id, "path": request.url.path})

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "request_id": request_id},
    )


async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler. Returns a 500 JSON response and keeps internals out of the body.
    """
    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(
        "Unhandled exception occurred",
        extra={"request_id": request_id, "path": request.url.path},
        exc_info=exc
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please contact support.",
            "request_id": request_id
        },
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    request_id = getattr(request.state, "request_id", "unknown")

    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code} error", extra={"request_id": request_id, "detail": exc.detail})
    else:
        logger.info(f"HTTP {exc.status_code} error", extra={"request_id": request_id, "detail": exc.detail})

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "request_id": request_id},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info("Validation error", extra={"request_id": request_id, "errors": exc.errors()})

    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation Error",
            "details": jsonable_errors(exc),
            "request_id": request_id
        },
    )


def jsonable_errors(exc: RequestValidationError):
    # pydantic v2 puts the raw exception object under "ctx" for custom validators
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors
