"""Health check and API banner.

Learn: Simple open GET endpoints. /health verifies the server is running
and the database is reachable; / identifies the API. Both answer with
the standard envelope like every other route.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text

from projectdesk import __version__
from projectdesk.responses import Responder, get_responder

router = APIRouter()


@router.get("/")
async def index(respond: Responder = Depends(get_responder)):
    return respond(
        200,
        {"name": "ProjectDesk API", "version": __version__},
        "API is running",
    )


@router.get("/health")
async def health_check(request: Request, respond: Responder = Depends(get_responder)):
    """Check server health and database connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return respond(200, {"status": status, **checks}, status)
