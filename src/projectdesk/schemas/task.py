"""Pydantic schemas for tasks.

Learn: Separate schemas for create/update/read keeps the API clean.
- TaskCreate: what you POST to create a task (title checked by the handler)
- TaskUpdate: what you PUT to modify a task (all optional, exclude_unset)
- TaskRead: what the API returns, with the assignee embedded
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from projectdesk.schemas.user import UserSummary

TaskStatus = Literal["pending", "in_progress", "completed", "canceled"]
TaskPriority = Literal["low", "medium", "high"]


class TaskCreate(BaseModel):
    title: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    due_date: Optional[datetime] = None
    assigned_to: Optional[int] = None


class TaskUpdate(BaseModel):
    """Partial update: assigned_to: null unassigns the task."""
    title: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    assigned_to: Optional[int] = None


class TaskSummary(BaseModel):
    id: int
    title: str
    status: str

    model_config = {"from_attributes": True}


class TaskRead(BaseModel):
    id: int
    title: str
    description: Optional[str]
    status: str
    priority: str
    due_date: Optional[datetime]
    project_id: int
    assigned_to: Optional[int]
    assignee: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
