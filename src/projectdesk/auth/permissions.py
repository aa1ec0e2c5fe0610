"""Owner-or-admin authorization gate.

Learn: One rule, applied at two granularities:

    allowed = project.created_by == caller.id or caller.role == "admin"

- require_project_access: project routes and project-scoped task routes.
  The project id comes from the path, falling back to a `project_id`
  field in a JSON body.
- require_task_access: /tasks/{task_id} routes. The task's parent
  project is loaded and the same rule applied.

Both store what they loaded on request.state so handlers don't reload.
"""

from typing import Any, Optional

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from projectdesk.auth.dependencies import CurrentIdentity, get_current_user
from projectdesk.db.engine import get_db
from projectdesk.db.models import Project, Task
from projectdesk.errors import (
    ApiError,
    AuthorizationError,
    InternalError,
    NotFoundError,
    ValidationError,
)

logger = structlog.get_logger()


def is_owner_or_admin(identity: CurrentIdentity, project: Project) -> bool:
    """The single authorization rule for projects and everything inside them."""
    return project.created_by == identity.id or identity.is_admin


def _parse_id(raw: Any) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


async def _project_id_from_request(request: Request) -> Any:
    """Path parameter first, then a `project_id` field in a JSON body."""
    raw = request.path_params.get("project_id")
    if raw not in (None, ""):
        return raw

    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get("project_id")
    return None


async def require_project_access(
    request: Request,
    identity: CurrentIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Project:
    """Allow the request only for the project's creator or an admin."""
    try:
        raw_id = await _project_id_from_request(request)
        if raw_id in (None, ""):
            raise ValidationError("project id not provided")

        project_id = _parse_id(raw_id)
        project = await db.get(Project, project_id) if project_id is not None else None
        if not project:
            raise NotFoundError("project not found")

        if not is_owner_or_admin(identity, project):
            logger.info(
                "authz.denied",
                user_id=identity.id,
                project_id=project.id,
            )
            raise AuthorizationError("not authorized to modify this project")

        request.state.project = project
        return project
    except ApiError:
        raise
    except Exception:
        logger.exception("authz.failed", user_id=identity.id)
        raise InternalError("error verifying permissions")


async def require_task_access(
    task_id: str,
    request: Request,
    identity: CurrentIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Task:
    """Allow the request only for the creator of the task's project or an admin."""
    try:
        parsed_id = _parse_id(task_id)
        task = await db.get(Task, parsed_id) if parsed_id is not None else None
        if not task:
            raise NotFoundError("task not found")

        project = await db.get(Project, task.project_id)
        if not project:
            raise NotFoundError("task not found")

        if not is_owner_or_admin(identity, project):
            logger.info(
                "authz.denied",
                user_id=identity.id,
                task_id=task.id,
                project_id=project.id,
            )
            raise AuthorizationError("not authorized to access this task")

        request.state.project = project
        request.state.task = task
        return task
    except ApiError:
        raise
    except Exception:
        logger.exception("authz.failed", user_id=identity.id)
        raise InternalError("error verifying permissions")
