"""FastAPI application factory.

Learn: App factory pattern: create_app() returns a configured FastAPI
instance. Everything process-wide is built here from one Settings object
and hung on app.state:

    app.state.settings         configuration
    app.state.token_codec      signs/verifies bearer tokens
    app.state.engine           async SQLAlchemy engine
    app.state.session_factory  per-request sessions (get_db)

Lifespan manages startup/shutdown (table bootstrap, engine disposal).
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from projectdesk import __version__
from projectdesk.api import build_api_router
from projectdesk.auth.jwt import TokenCodec
from projectdesk.config import Settings, get_settings
from projectdesk.db.engine import build_engine, build_session_factory, create_tables
from projectdesk.errors import register_exception_handlers

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: FastAPI lifespan replaces on_event("startup") / on_event("shutdown").
    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(
        "projectdesk.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    if settings.auto_create_tables:
        await create_tables(app.state.engine)
        logger.info("projectdesk.tables_ready")

    yield

    logger.info("projectdesk.shutdown")
    await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="ProjectDesk",
        description="Project and task management API with owner-or-admin access control",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.token_codec = TokenCodec.from_settings(settings)
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → ErrorEnvelope → CORS → handler

    from projectdesk.middleware.errors import ErrorEnvelopeMiddleware
    from projectdesk.middleware.request_id import RequestIdMiddleware
    from projectdesk.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ErrorEnvelopeMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(build_api_router(settings.api_prefix))

    return app


# Default app instance (used by uvicorn: projectdesk.main:app)
app = create_app()
