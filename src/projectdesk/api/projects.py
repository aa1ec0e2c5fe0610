"""Project API routes.

Learn: Routes translate HTTP to service calls. The owner-or-admin gate
(require_project_access) runs as a dependency and hands the loaded
project to the handler, so handlers never re-check ownership.

Key patterns:
- Query params for filtering (status, search)
- Non-admins only ever see their own projects in the list
- DELETE cascades to the project's tasks (see ProjectService)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from projectdesk.auth.dependencies import CurrentIdentity, get_current_user
from projectdesk.auth.permissions import require_project_access
from projectdesk.db.engine import get_db
from projectdesk.db.models import Project
from projectdesk.errors import NotFoundError, ValidationError, guarded
from projectdesk.responses import Responder, get_responder
from projectdesk.schemas.project import (
    ProjectCreate,
    ProjectDetail,
    ProjectListItem,
    ProjectRead,
    ProjectUpdate,
)
from projectdesk.services.project_service import ProjectService

router = APIRouter(prefix="/projects")


def _svc(db: AsyncSession = Depends(get_db)) -> ProjectService:
    return ProjectService(db)


@router.get("")
@guarded("error listing projects")
async def list_projects(
    status: Optional[str] = Query(None, description="Filter by status"),
    search: Optional[str] = Query(None, description="Substring of the project name"),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
    respond: Responder = Depends(get_responder),
):
    """List the caller's projects (admins see every project)."""
    projects = await svc.list_projects(
        owner_id=None if identity.is_admin else identity.id,
        status=status,
        search=search,
    )
    return respond(
        200,
        [ProjectListItem.model_validate(p) for p in projects],
        "projects retrieved",
    )


@router.post("", status_code=201)
@guarded("error creating project")
async def create_project(
    body: ProjectCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
    respond: Responder = Depends(get_responder),
):
    """Create a project owned by the caller."""
    if not body.name:
        raise ValidationError("project name is required")

    project = await svc.create_project(
        created_by=identity.id,
        name=body.name,
        description=body.description,
        status=body.status,
        start_date=body.start_date,
        end_date=body.end_date,
    )
    return respond(201, ProjectRead.model_validate(project), "project created")


@router.get("/{project_id}")
@guarded("error fetching project")
async def get_project(
    project: Project = Depends(require_project_access),
    svc: ProjectService = Depends(_svc),
    respond: Responder = Depends(get_responder),
):
    """Get a project with its creator and tasks."""
    detail = await svc.get_project_detail(project.id)
    if not detail:
        raise NotFoundError("project not found")
    return respond(200, ProjectDetail.model_validate(detail), "project retrieved")


@router.put("/{project_id}")
@guarded("error updating project")
async def update_project(
    body: ProjectUpdate,
    project: Project = Depends(require_project_access),
    svc: ProjectService = Depends(_svc),
    respond: Responder = Depends(get_responder),
):
    """Partially update a project (only fields present in the body)."""
    project = await svc.update_project(project, body.model_dump(exclude_unset=True))
    return respond(200, ProjectRead.model_validate(project), "project updated")


@router.delete("/{project_id}")
@guarded("error deleting project")
async def delete_project(
    project: Project = Depends(require_project_access),
    svc: ProjectService = Depends(_svc),
    respond: Responder = Depends(get_responder),
):
    """Delete a project and every task in it."""
    project_id = project.id
    tasks_deleted = await svc.delete_project(project)
    return respond(
        200,
        {"id": project_id, "tasks_deleted": tasks_deleted},
        "project deleted",
    )
