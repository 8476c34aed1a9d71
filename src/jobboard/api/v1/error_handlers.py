# src/jobboard/api/v1/error_handlers.py
"""
FastAPI exception handlers that map app-level errors to HTTP responses.

How to use:
    - Call register_exception_handlers(app) from the app factory (see jobboard.main).
    - Services raise jobboard.exceptions.base.* (NotFoundError, ConflictError, InternalError).
    - These handlers produce stable JSON payloads (via .to_payload()) and status
      codes (via .http_status()): 404, 409 and 500.

If a service raises ConflictError("Unique constraint violation: email", fields=["email"]),
the client gets HTTP 409 and:
    {"detail": "Unique constraint violation: email", "code": "conflict", "fields": ["email"]}
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging
from jobboard.exceptions.base import (
    RepositoryError,
    ConflictError,
    InternalError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


# Most specific first. Mapping itself lives on the exception classes.

async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    """
    409 Conflict.
    Payload: {"detail": "...", "code": "conflict", "fields": [...] | absent}
    """
    logger.info(
        "http.conflict",
        extra={"method": request.method, "path": request.url.path, "fields": exc.fields},
    )
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """
    404 Not Found.
    """
    logger.info(
        "http.not_found",
        extra={"method": request.method, "path": request.url.path, "fields": exc.fields},
    )
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def internal_error_handler(request: Request, exc: InternalError) -> JSONResponse:
    """
    500. The message is already storage-agnostic; the cause was logged where it was wrapped.
    """
    logger.error("http.internal_error", extra={"method": request.method, "path": request.url.path})
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    """
    Fallback for any other RepositoryError subclass (status from its error code, 400 by default).
    """
    logger.warning(
        "http.repository_error",
        extra={"method": request.method, "path": request.url.path, "error_code": exc.error_code},
    )
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ConflictError, conflict_error_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(InternalError, internal_error_handler)
    app.add_exception_handler(RepositoryError, repository_error_handler)
