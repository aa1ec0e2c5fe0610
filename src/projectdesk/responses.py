"""Response envelope formatting (JSON and XML).

Learn: Every response the API sends, success or error, is the same
envelope:

    {"success": true, "code": 200, "message": "OK",
     "data": {...}, "timestamp": "2026-01-01T12:00:00.000Z"}

The client picks the serialization with ?format=xml (default JSON).
XML is built with the standard library's ElementTree: mappings become
nested elements named after their keys, sequences become repeated
<item> elements and scalars become text.
"""

import json
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from starlette.responses import Response

JSON = "json"
XML = "xml"

JSON_MEDIA_TYPE = "application/json"
XML_MEDIA_TYPE = "application/xml"

DEFAULT_MESSAGES: dict[int, str] = {
    200: "OK",
    201: "Created",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    500: "Internal Server Error",
}
FALLBACK_MESSAGE = "Operation completed"

_INVALID_NAME_CHARS = re.compile(r"[^A-Za-z0-9_.\-]")
# Anything outside the XML 1.0 Char production.
_XML_ILLEGAL_CHARS = re.compile(
    "[^\u0009\u000A\u000D\u0020-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]"
)


def default_message(status_code: int) -> str:
    return DEFAULT_MESSAGES.get(status_code, FALLBACK_MESSAGE)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2026-01-01T12:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def resolve_format(request: Request) -> str:
    """Pick the response format from the `format` query parameter."""
    requested = request.query_params.get("format", "")
    return XML if requested.lower() == XML else JSON


def build_envelope(
    status_code: int,
    data: Any = None,
    message: Optional[str] = None,
) -> dict:
    """Wrap a result into the uniform envelope (data made JSON-representable)."""
    return {
        "success": 200 <= status_code < 300,
        "code": status_code,
        "message": message or default_message(status_code),
        "data": jsonable_encoder(data) if data is not None else None,
        "timestamp": utc_timestamp(),
    }


# ─── XML ────────────────────────────────────────────────


def _element_name(key: Any) -> str:
    """Coerce a mapping key into a valid XML element name."""
    name = _INVALID_NAME_CHARS.sub("_", xml_safe(str(key)))
    if not name or not (name[0].isalpha() or name[0] == "_"):
        name = f"_{name}"
    if name.lower().startswith("xml"):
        name = f"_{name}"
    return name


def xml_safe(text: str) -> str:
    """Replace characters XML 1.0 forbids (most C0 controls) with U+FFFD."""
    return _XML_ILLEGAL_CHARS.sub("\ufffd", text)


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return xml_safe(str(value))


def _fill(element: ET.Element, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, dict):
        for key, child in value.items():
            _fill(ET.SubElement(element, _element_name(key)), child)
    elif isinstance(value, (list, tuple)):
        for child in value:
            _fill(ET.SubElement(element, "item"), child)
    else:
        element.text = _scalar_text(value)


def to_xml(envelope: dict, root: str = "response") -> str:
    """Serialize an envelope (or any JSON-representable value) as an XML document."""
    element = ET.Element(root)
    _fill(element, envelope)
    ET.indent(element, space="  ")
    body = ET.tostring(element, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}'


# ─── Response construction ──────────────────────────────


def render(envelope: dict, fmt: str = JSON) -> tuple[str, str]:
    """Return (body, media_type) for an envelope in the chosen format."""
    if fmt == XML:
        return to_xml(envelope), XML_MEDIA_TYPE
    return json.dumps(envelope), JSON_MEDIA_TYPE


def format_response(
    status_code: int,
    data: Any = None,
    message: Optional[str] = None,
    fmt: str = JSON,
    headers: Optional[dict] = None,
) -> Response:
    """Build the HTTP response: status line, content type and envelope body."""
    envelope = build_envelope(status_code, data, message)
    body, media_type = render(envelope, fmt)
    return Response(
        content=body,
        status_code=status_code,
        media_type=media_type,
        headers=headers,
    )


class Responder:
    """Per-request formatter bound to the client's format preference.

    Learn: Injected into handlers via Depends(get_responder) so route
    code reads `return respond(201, project, "project created")`.
    """

    def __init__(self, fmt: str = JSON):
        self.fmt = fmt

    def __call__(
        self,
        status_code: int,
        data: Any = None,
        message: Optional[str] = None,
    ) -> Response:
        return format_response(status_code, data, message, self.fmt)


def get_responder(request: Request) -> Responder:
    """FastAPI dependency: a Responder for this request's format."""
    return Responder(resolve_format(request))
