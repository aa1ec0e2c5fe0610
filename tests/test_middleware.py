"""Tests for middleware and error envelopes: headers, request IDs, fallbacks.

Learn: Every response, including framework errors and crashes, must be
a formatted envelope. Throwaway routes that raise are added to the test
app to drive the error paths.
"""

import xml.etree.ElementTree as ET

import pytest

from projectdesk.errors import guarded


@pytest.mark.asyncio
async def test_security_headers(client):
    r = await client.get("/api/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert r.headers["Cache-Control"] == "no-store"


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    """HSTS header is NOT set on HTTP connections (only HTTPS)."""
    r = await client.get("/api/health")
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_hsts_behind_tls_proxy(client):
    r = await client.get("/api/health", headers={"X-Forwarded-Proto": "https"})
    assert r.headers["Strict-Transport-Security"].startswith("max-age=")


@pytest.mark.asyncio
async def test_request_id_generated(client):
    r1 = await client.get("/api/health")
    r2 = await client.get("/api/health")
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    r = await client.get("/api/health", headers={"X-Request-ID": "test-trace-12345"})
    assert r.headers["X-Request-ID"] == "test-trace-12345"


@pytest.mark.asyncio
async def test_unknown_route_is_404_envelope(client):
    r = await client.get("/api/nowhere")
    assert r.status_code == 404
    body = r.json()
    assert body == {
        "success": False,
        "code": 404,
        "message": "route not found",
        "data": None,
        "timestamp": body["timestamp"],
    }


@pytest.mark.asyncio
async def test_unknown_route_as_xml(client):
    r = await client.get("/api/nowhere?format=xml")
    assert r.status_code == 404
    assert r.headers["content-type"].startswith("application/xml")
    assert ET.fromstring(r.content).findtext("message") == "route not found"


@pytest.mark.asyncio
async def test_wrong_method_is_405_envelope(client):
    r = await client.delete("/api/auth/login")
    assert r.status_code == 405
    assert r.json()["code"] == 405
    assert r.json()["success"] is False


@pytest.mark.asyncio
async def test_malformed_json_is_400(client):
    r = await client.post(
        "/api/auth/login",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json()["success"] is False


@pytest.mark.asyncio
async def test_guarded_handler_hides_details(app, client):
    @guarded("error doing the thing")
    async def explode():
        raise RuntimeError("secret internals")

    app.router.add_api_route("/api/_explode", explode, methods=["GET"])

    r = await client.get("/api/_explode?format=xml")
    assert r.status_code == 500
    root = ET.fromstring(r.content)
    assert root.findtext("message") == "error doing the thing"
    assert "secret internals" not in r.text


@pytest.mark.asyncio
async def test_unhandled_exception_is_500_envelope(app, client):
    async def crash():
        raise RuntimeError("boom")

    app.router.add_api_route("/api/_crash", crash, methods=["GET"])

    r = await client.get("/api/_crash")
    assert r.status_code == 500
    assert r.json()["message"] == "internal server error"
    assert r.json()["success"] is False
    assert "boom" not in r.text
    assert "X-Request-ID" in r.headers
