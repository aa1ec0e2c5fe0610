"""Task API routes.

Learn: Two families of routes, one authorization rule:
- /projects/{project_id}/tasks: gated by require_project_access
- /tasks/{task_id}: gated by require_task_access, which applies the
  same owner-or-admin rule to the task's parent project

Query params for filtering (status, priority, assigned_to).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from projectdesk.auth.permissions import require_project_access, require_task_access
from projectdesk.db.engine import get_db
from projectdesk.db.models import Project, Task
from projectdesk.errors import NotFoundError, ValidationError, guarded
from projectdesk.responses import Responder, get_responder
from projectdesk.schemas.task import TaskCreate, TaskRead, TaskUpdate
from projectdesk.services.task_service import TaskService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db)


# ═══════════════════════════════════════════════════════════
# Project-scoped
# ═══════════════════════════════════════════════════════════


@router.get("/projects/{project_id}/tasks")
@guarded("error listing tasks")
async def list_project_tasks(
    status: Optional[str] = Query(None, description="Filter by status"),
    priority: Optional[str] = Query(None, description="Filter by priority"),
    assigned_to: Optional[int] = Query(None, description="Filter by assignee id"),
    project: Project = Depends(require_project_access),
    svc: TaskService = Depends(_svc),
    respond: Responder = Depends(get_responder),
):
    """List a project's tasks, highest priority and newest first."""
    tasks = await svc.list_tasks(
        project_id=project.id,
        status=status,
        priority=priority,
        assigned_to=assigned_to,
    )
    return respond(200, [TaskRead.model_validate(t) for t in tasks], "tasks retrieved")


@router.post("/projects/{project_id}/tasks", status_code=201)
@guarded("error creating task")
async def create_task(
    body: TaskCreate,
    project: Project = Depends(require_project_access),
    svc: TaskService = Depends(_svc),
    respond: Responder = Depends(get_responder),
):
    """Create a task in the project, optionally assigned to a user."""
    if not body.title:
        raise ValidationError("task title is required")

    task = await svc.create_task(
        project_id=project.id,
        title=body.title,
        description=body.description,
        status=body.status,
        priority=body.priority,
        due_date=body.due_date,
        assigned_to=body.assigned_to,
    )
    return respond(201, TaskRead.model_validate(task), "task created")


# ═══════════════════════════════════════════════════════════
# Single task
# ═══════════════════════════════════════════════════════════


@router.get("/tasks/{task_id}")
@guarded("error fetching task")
async def get_task(
    task: Task = Depends(require_task_access),
    svc: TaskService = Depends(_svc),
    respond: Responder = Depends(get_responder),
):
    loaded = await svc.get_task(task.id)
    if not loaded:
        raise NotFoundError("task not found")
    return respond(200, TaskRead.model_validate(loaded), "task retrieved")


@router.put("/tasks/{task_id}")
@guarded("error updating task")
async def update_task(
    body: TaskUpdate,
    task: Task = Depends(require_task_access),
    svc: TaskService = Depends(_svc),
    respond: Responder = Depends(get_responder),
):
    """Partially update a task. Reassigning checks the new assignee exists."""
    task = await svc.update_task(task, body.model_dump(exclude_unset=True))
    return respond(200, TaskRead.model_validate(task), "task updated")


@router.delete("/tasks/{task_id}")
@guarded("error deleting task")
async def delete_task(
    task: Task = Depends(require_task_access),
    svc: TaskService = Depends(_svc),
    respond: Responder = Depends(get_responder),
):
    task_id = task.id
    await svc.delete_task(task)
    return respond(200, {"id": task_id}, "task deleted")
