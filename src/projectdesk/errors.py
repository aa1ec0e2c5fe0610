"""Error taxonomy and exception handlers.

Learn: Gates and handlers raise ApiError subclasses; the handlers
registered here turn them into response envelopes. Nothing reaches the
client without passing through the response formatter, and unexpected
exceptions are logged server-side and replaced with a generic message.

    ValidationError      400
    AuthenticationError  401
    AuthorizationError   403
    NotFoundError        404
    InternalError        500
"""

import functools
from typing import Optional

import pydantic
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from projectdesk.responses import format_response, resolve_format

logger = structlog.get_logger()


class ApiError(Exception):
    """Base for errors that map onto a response envelope."""

    status_code = 500

    def __init__(self, message: str, headers: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.headers = headers


class ValidationError(ApiError):
    status_code = 400


class AuthenticationError(ApiError):
    status_code = 401

    def __init__(self, message: str):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class InternalError(ApiError):
    status_code = 500


def flatten_validation_errors(errors: list[dict]) -> str:
    """Join pydantic error entries into one human-readable message.

    Learn: The request location prefix ("body", "query") is dropped so
    clients see "title: String should have at least 2 characters".
    """
    messages = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        msg = err.get("msg", "invalid value")
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return ", ".join(messages) or "invalid request"


def guarded(message: str):
    """Convert unexpected handler failures into InternalError(message).

    ApiErrors pass through untouched; pydantic validation failures raised
    inside the handler become a 400 with flattened messages.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except ApiError:
                raise
            except pydantic.ValidationError as e:
                raise ValidationError(flatten_validation_errors(e.errors()))
            except Exception:
                logger.exception("handler.failed", handler=func.__name__)
                raise InternalError(message)

        return wrapper

    return decorator


# ─── Exception handlers ─────────────────────────────────


async def _api_error_handler(request: Request, exc: ApiError):
    return format_response(
        exc.status_code,
        message=exc.message,
        fmt=resolve_format(request),
        headers=exc.headers,
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    return format_response(
        400,
        message=flatten_validation_errors(exc.errors()),
        fmt=resolve_format(request),
    )


async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        message = "route not found"
    elif exc.status_code == 405:
        message = "method not allowed"
    else:
        message = exc.detail if isinstance(exc.detail, str) else None
    return format_response(
        exc.status_code,
        message=message,
        fmt=resolve_format(request),
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the envelope-producing handlers to an app."""
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
