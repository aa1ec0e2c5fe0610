"""Task service: task CRUD inside a project.

Learn: Authorization is not done here; routes receive the task (and its
parent project) already checked by the owner-or-admin gate. The service
only validates references (the assignee must exist) and persists.
"""

from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from projectdesk.db.models import TASK_PRIORITIES, TASK_STATUSES, Task, User
from projectdesk.errors import NotFoundError

logger = structlog.get_logger()

# high → medium → low when sorting descending
PRIORITY_RANK = case(
    {"high": 3, "medium": 2, "low": 1},
    value=Task.priority,
    else_=0,
)


class TaskService:
    """Business logic for task CRUD."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _ensure_assignee(self, user_id: Optional[int]) -> None:
        if user_id is not None and not await self.db.get(User, user_id):
            raise NotFoundError("assigned user not found")

    # ─── Create ──────────────────────────────────────────

    async def create_task(
        self,
        project_id: int,
        title: str,
        description: Optional[str] = None,
        status: str = "pending",
        priority: str = "medium",
        due_date: Optional[datetime] = None,
        assigned_to: Optional[int] = None,
    ) -> Task:
        """Create a task. The assignee is checked before anything is written."""
        await self._ensure_assignee(assigned_to)

        task = Task(
            project_id=project_id,
            title=title,
            description=description,
            status=status or "pending",
            priority=priority or "medium",
            due_date=due_date,
            assigned_to=assigned_to,
        )
        self.db.add(task)
        await self.db.commit()
        logger.info("task.created", task_id=task.id, project_id=project_id)
        return await self.get_task(task.id)

    # ─── Read ────────────────────────────────────────────

    async def get_task(self, task_id: int) -> Optional[Task]:
        """Load a task with its assignee."""
        result = await self.db.execute(
            select(Task)
            .where(Task.id == task_id)
            .options(selectinload(Task.assignee))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def list_tasks(
        self,
        project_id: int,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        assigned_to: Optional[int] = None,
    ) -> list[Task]:
        """List a project's tasks, highest priority first, then newest first.

        Learn: Query filters are applied conditionally: only when the
        caller provides a recognised value.
        """
        query = (
            select(Task)
            .where(Task.project_id == project_id)
            .options(selectinload(Task.assignee))
            .order_by(PRIORITY_RANK.desc(), Task.created_at.desc(), Task.id.desc())
        )
        if status and status in TASK_STATUSES:
            query = query.where(Task.status == status)
        if priority and priority in TASK_PRIORITIES:
            query = query.where(Task.priority == priority)
        if assigned_to is not None:
            query = query.where(Task.assigned_to == assigned_to)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ─── Update ──────────────────────────────────────────

    async def update_task(self, task: Task, changes: dict) -> Task:
        """Apply a partial update (from model_dump(exclude_unset=True)).

        Learn: Required columns (title, status, priority) ignore nulls;
        description, due_date and assigned_to may be cleared with null.
        A changed assignee must exist.
        """
        if "assigned_to" in changes and changes["assigned_to"] != task.assigned_to:
            await self._ensure_assignee(changes["assigned_to"])

        for field in ("title", "status", "priority"):
            if changes.get(field) is not None:
                setattr(task, field, changes[field])
        for field in ("description", "due_date", "assigned_to"):
            if field in changes:
                setattr(task, field, changes[field])

        await self.db.commit()
        logger.info("task.updated", task_id=task.id, fields=sorted(changes))
        return await self.get_task(task.id)

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, task: Task) -> None:
        await self.db.delete(task)
        await self.db.commit()
        logger.info("task.deleted", task_id=task.id, project_id=task.project_id)
