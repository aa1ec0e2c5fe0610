"""Pydantic schemas for projects.

Learn: Create fields are optional at the schema level so the handler can
report a missing name with its own message; update schemas are applied
with exclude_unset, so "field omitted" and "field set to null" differ.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from projectdesk.schemas.task import TaskRead, TaskSummary
from projectdesk.schemas.user import UserSummary

ProjectStatus = Literal["active", "completed", "canceled"]

# Number of tasks embedded in each project of a list response.
TASK_PREVIEW_LIMIT = 5


class ProjectCreate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None
    status: ProjectStatus = "active"
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class ProjectUpdate(BaseModel):
    """Partial update: only fields present in the body are applied."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class ProjectRead(BaseModel):
    id: int
    name: str
    description: Optional[str]
    status: str
    start_date: datetime
    end_date: Optional[datetime]
    created_by: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectListItem(ProjectRead):
    """Project row in a list: creator plus a short task preview."""
    creator: UserSummary
    tasks: list[TaskSummary] = []

    @field_validator("tasks")
    @classmethod
    def preview(cls, v: list[TaskSummary]) -> list[TaskSummary]:
        return v[:TASK_PREVIEW_LIMIT]


class ProjectDetail(ProjectRead):
    """Single project with creator and every task (with assignees)."""
    creator: UserSummary
    tasks: list[TaskRead] = []
