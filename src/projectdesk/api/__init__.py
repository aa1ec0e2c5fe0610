"""API route aggregation.

All routers registered here get mounted in main.py under the configured
prefix (default /api).

Learn: Unlike a blanket include_router(dependencies=...), auth is declared
per route: project and task handlers depend on get_current_user (or on a
gate that depends on it), while health and register/login stay open.
"""

from fastapi import APIRouter

from projectdesk.api.auth import router as auth_router
from projectdesk.api.health import router as health_router
from projectdesk.api.projects import router as projects_router
from projectdesk.api.tasks import router as tasks_router


def build_api_router(prefix: str = "/api") -> APIRouter:
    api_router = APIRouter(prefix=prefix)

    # Open routes
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(auth_router, tags=["auth"])

    # Bearer-protected routes
    api_router.include_router(projects_router, tags=["projects"])
    api_router.include_router(tasks_router, tags=["tasks"])
    return api_router
