"""Secure error handling for API and page responses.

Domain exceptions from `agora.errors` are mapped to status codes here. JSON
callers under `/api/` get `{"error": <message>}`; human-facing pages get the
same message as plain text. Unexpected exceptions are logged in full and
answered with a generic message carrying a short reference id, never with
internals.
"""

import uuid

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

from agora.auth.dependencies import AdminLoginRequired
from agora.errors import (
    ConflictError,
    EntityNotFoundError,
    ForbiddenError,
    ForumError,
    StoreError,
    UnauthenticatedError,
    ValidationError,
)

log = structlog.get_logger()

INTERNAL_ERROR = "An internal error occurred. Please try again later."
VALIDATION_ERROR = "Invalid request data."
RATE_LIMIT_ERROR = "Too many requests. Please try again later."

API_PREFIX = "/api/"

STATUS_BY_ERROR: dict[type[ForumError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    UnauthenticatedError: status.HTTP_401_UNAUTHORIZED,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    EntityNotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    StoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: ForumError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]  # type: ignore[index]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(request: Request, message: str, status_code: int) -> Response:
    """Render an error in the shape the caller expects."""
    if request.url.path.startswith(API_PREFIX):
        return JSONResponse({"error": message}, status_code=status_code)
    return PlainTextResponse(message, status_code=status_code)


def _internal_error(request: Request, exc: Exception) -> Response:
    error_id = str(uuid.uuid4())[:8]
    log.error(
        "internal_error",
        error_id=error_id,
        path=request.url.path,
        error_type=type(exc).__name__,
        error_message=str(exc),
        exc_info=exc,
    )
    return error_response(
        request,
        f"{INTERNAL_ERROR} (ref: {error_id})",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def forum_error_handler(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, ForumError)
    code = status_for(exc)
    if code >= 500:
        return _internal_error(request, exc)
    if code == status.HTTP_401_UNAUTHORIZED:
        log.info("request_unauthenticated", path=request.url.path, reason=exc.message)
    return error_response(request, exc.message, code)


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, HTTPException)
    return error_response(request, str(exc.detail), exc.status_code)


async def request_validation_handler(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, RequestValidationError)
    errors = exc.errors()
    log.warning("validation_error", path=request.url.path, errors=len(errors))
    message = VALIDATION_ERROR
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid')}" if location else first.get("msg")
    return error_response(request, message or VALIDATION_ERROR, status.HTTP_400_BAD_REQUEST)


async def admin_login_handler(request: Request, exc: Exception) -> Response:
    return RedirectResponse("/admin/login", status_code=status.HTTP_303_SEE_OTHER)


async def rate_limit_handler(request: Request, exc: Exception) -> Response:
    log.warning("rate_limited", path=request.url.path)
    return error_response(request, RATE_LIMIT_ERROR, status.HTTP_429_TOO_MANY_REQUESTS)


async def unhandled_error_handler(request: Request, exc: Exception) -> Response:
    return _internal_error(request, exc)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ForumError, forum_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(AdminLoginRequired, admin_login_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
