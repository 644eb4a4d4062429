"""
Error taxonomy shared by every feature package, and its HTTP mapping.

Services raise these; `register_exception_handlers` turns them into
`{"detail": ...}` responses so routers never build error responses by hand.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class NotFoundError(LookupError):
    """A referenced id does not resolve, or a dish is not owned by the restaurant."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class BadRequestError(ValueError):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# Database failures are explicit and separable from domain errors.
class StoreError(RuntimeError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Database statement failed."):
        self.message = message
        super().__init__(message)


class StoreUnavailableError(StoreError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Database is unavailable."):
        super().__init__(message)


class StoreTimeoutError(StoreError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT

    def __init__(self, message: str = "Database operation timed out."):
        super().__init__(message)


async def _not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.info("not_found method=%s path=%s detail=%s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message})


async def _bad_request_handler(request: Request, exc: BadRequestError) -> JSONResponse:
    logger.info("bad_request method=%s path=%s detail=%s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.message})


async def _validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed payloads are client errors in this API; keep pydantic's detail list.
    logger.info("invalid_request method=%s path=%s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def _store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error(
        "store_error method=%s path=%s status=%s detail=%s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.message,
        exc_info=exc,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotFoundError, _not_found_handler)
    app.add_exception_handler(BadRequestError, _bad_request_handler)
    app.add_exception_handler(RequestValidationError, _validation_handler)
    app.add_exception_handler(StoreError, _store_error_handler)
