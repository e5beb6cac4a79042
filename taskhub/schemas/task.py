"""
Task and Subtask Schemas
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from taskhub.models.enums import TaskStatus
from taskhub.schemas.project import reject_null


class TaskCreate(BaseModel):
    """New tasks start as pending. assigned_to defaults to the creator."""
    project_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    priority: Optional[int] = Field(None, ge=0)
    due_date: Optional[datetime] = None
    assigned_to: Optional[int] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    priority: Optional[int] = Field(None, ge=0)
    due_date: Optional[datetime] = None
    assigned_to: Optional[int] = None
    status: Optional[TaskStatus] = None

    @field_validator("title", "status")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class TaskResponse(BaseModel):
    id: int
    project_id: int
    assigned_to: Optional[int]
    status: TaskStatus
    title: str
    description: Optional[str]
    priority: Optional[int]
    due_date: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class SubtaskCreate(BaseModel):
    task_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    assigned_to: Optional[int] = None


class SubtaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    status: Optional[TaskStatus] = None

    @field_validator("title", "status")
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)


class SubtaskResponse(BaseModel):
    id: int
    task_id: int
    assigned_to: Optional[int]
    status: TaskStatus
    title: str
    description: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
