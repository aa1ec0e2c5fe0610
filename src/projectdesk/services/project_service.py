"""Project service: project CRUD with an explicit task cascade.

Learn: Deleting a project removes its tasks in the same transaction,
as an explicit DELETE issued before the project row goes. No orphan
task can reference a deleted project, and nothing depends on ORM or
database cascade hooks.
"""

from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from projectdesk.db.models import PROJECT_STATUSES, Project, Task, utcnow

logger = structlog.get_logger()


class ProjectService:
    """Business logic for projects."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Create ──────────────────────────────────────────

    async def create_project(
        self,
        created_by: int,
        name: str,
        description: Optional[str] = None,
        status: str = "active",
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Project:
        project = Project(
            name=name,
            description=description,
            status=status or "active",
            start_date=start_date or utcnow(),
            end_date=end_date,
            created_by=created_by,
        )
        self.db.add(project)
        await self.db.commit()
        await self.db.refresh(project)
        logger.info("project.created", project_id=project.id, created_by=created_by)
        return project

    # ─── Read ────────────────────────────────────────────

    async def get_project(self, project_id: int) -> Optional[Project]:
        return await self.db.get(Project, project_id)

    async def get_project_detail(self, project_id: int) -> Optional[Project]:
        """Project with its creator and all tasks (and their assignees) loaded."""
        result = await self.db.execute(
            select(Project)
            .where(Project.id == project_id)
            .options(
                selectinload(Project.creator),
                selectinload(Project.tasks).selectinload(Task.assignee),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def list_projects(
        self,
        owner_id: Optional[int] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Project]:
        """List projects, newest first.

        Learn: owner_id=None means "all projects" (the admin view).
        Filters are applied only when given; an unknown status is ignored
        rather than matching nothing.
        """
        query = (
            select(Project)
            .options(selectinload(Project.creator), selectinload(Project.tasks))
            .order_by(Project.created_at.desc(), Project.id.desc())
        )
        if owner_id is not None:
            query = query.where(Project.created_by == owner_id)
        if status and status in PROJECT_STATUSES:
            query = query.where(Project.status == status)
        if search:
            query = query.where(Project.name.ilike(f"%{search}%"))

        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ─── Update ──────────────────────────────────────────

    async def update_project(self, project: Project, changes: dict) -> Project:
        """Apply a partial update.

        Learn: `changes` comes from model_dump(exclude_unset=True). A null
        name, status or start date is ignored (those columns are required);
        a null description or end date clears it.
        """
        for field in ("name", "status", "start_date"):
            if changes.get(field) is not None:
                setattr(project, field, changes[field])
        for field in ("description", "end_date"):
            if field in changes:
                setattr(project, field, changes[field])

        await self.db.commit()
        await self.db.refresh(project)
        logger.info("project.updated", project_id=project.id, fields=sorted(changes))
        return project

    # ─── Delete ──────────────────────────────────────────

    async def delete_project(self, project: Project) -> int:
        """Delete a project and all of its tasks. Returns the number of tasks removed."""
        result = await self.db.execute(
            delete(Task).where(Task.project_id == project.id)
        )
        await self.db.delete(project)
        await self.db.commit()
        logger.info("project.deleted", project_id=project.id, tasks_deleted=result.rowcount)
        return result.rowcount
