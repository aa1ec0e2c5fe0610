"""Pydantic schemas for users and authentication.

Learn: Separate input schemas (register/login) from output schemas.
UserRead never includes the password hash, so a user row can be
handed to the response formatter directly.
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., max_length=255)
    password: str
    role: Optional[str] = None  # only an explicit "admin" grants admin

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("invalid email address")
        return v


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserSummary(BaseModel):
    """Compact user shape embedded in projects and tasks."""
    id: int
    name: str
    email: str

    model_config = {"from_attributes": True}


class UserRead(UserSummary):
    role: str
    active: bool
    created_at: datetime
    updated_at: datetime


class LoginResponse(BaseModel):
    user: UserRead
    token: str
    token_type: str = "bearer"
