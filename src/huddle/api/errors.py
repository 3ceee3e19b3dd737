"""Map domain failures onto HTTP responses.

Handlers only translate; they never decide outcomes.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from huddle.core.errors import (
    AuthFailed,
    Conflict,
    DuplicateIdentity,
    Forbidden,
    HuddleError,
    InvalidArgument,
    NotFound,
    Unavailable,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[HuddleError], int] = {
    AuthFailed: status.HTTP_401_UNAUTHORIZED,
    DuplicateIdentity: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
    Forbidden: status.HTTP_403_FORBIDDEN,
    Conflict: status.HTTP_409_CONFLICT,
    InvalidArgument: status.HTTP_400_BAD_REQUEST,
    Unavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: HuddleError) -> int:
    """Return the HTTP status for ``exc``, honouring subclasses."""
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_body(message: str, code: str) -> dict[str, str]:
    return {"detail": message, "code": code}


async def huddle_error_handler(request: Request, exc: HuddleError) -> JSONResponse:
    code = status_for(exc)
    log = logger.error if code >= 500 else logger.info
    log("%s %s -> %d %s: %s", request.method, request.url.path, code, exc.code, exc.message)
    return JSONResponse(status_code=code, content=_error_body(exc.message, exc.code))


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("%s %s hit a constraint: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body("Conflicting change, retry", Conflict.code),
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("%s %s failed in storage", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body("Storage is temporarily unavailable", Unavailable.code),
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HuddleError, huddle_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
