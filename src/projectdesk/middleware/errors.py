"""Last-resort error middleware.

Learn: Exception handlers cover ApiError and framework errors, but an
exception that escapes everything (a bug in a dependency, a failure in
another middleware) would otherwise reach the client as a bare 500.
This middleware wraps the app, logs the traceback and answers with the
standard envelope in the requested format.
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from projectdesk.responses import format_response, resolve_format

logger = structlog.get_logger()


class ErrorEnvelopeMiddleware(BaseHTTPMiddleware):
    """Turn uncaught exceptions into a 500 envelope."""

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception:
            logger.exception("request.unhandled_error")
            return format_response(
                500,
                message="internal server error",
                fmt=resolve_format(request),
            )
