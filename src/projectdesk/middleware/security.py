"""Security headers middleware.

Learn: Every response carries the same fixed header set, envelope errors
included, because the middleware sits outside the error handling. The
API serves per-user JSON/XML, never HTML, so the set is aimed at data
responses:
- X-Content-Type-Options: browsers must not sniff XML bodies as HTML
- X-Frame-Options / Referrer-Policy: standard hardening
- Cache-Control: no-store unless a handler chose otherwise

HSTS is only sent when the request arrived over HTTPS, either directly
or through a proxy that reports it in X-Forwarded-Proto.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

FIXED_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}
HSTS_VALUE = "max-age=31536000; includeSubDomains"


def is_https(request: Request) -> bool:
    forwarded = request.headers.get("X-Forwarded-Proto", "")
    return request.url.scheme == "https" or forwarded.split(",")[0].strip() == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp FIXED_HEADERS (and HSTS on HTTPS) onto every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(FIXED_HEADERS)
        response.headers.setdefault("Cache-Control", "no-store")
        if is_https(request):
            response.headers["Strict-Transport-Security"] = HSTS_VALUE
        return response
