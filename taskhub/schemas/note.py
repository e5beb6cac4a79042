"""
Note Schemas

A note may name at most one attachment. Leaving all four empty makes it a
personal note. Naming more than one is rejected by the endpoint with the
same error the model layer would raise.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from taskhub.schemas.project import COLOR_PATTERN, reject_null


class NoteCreate(BaseModel):
    content: str = Field(..., min_length=1)
    tags: Optional[str] = Field(None, max_length=255)
    decoration_color: Optional[str] = Field(None, pattern=COLOR_PATTERN)

    company_id: Optional[int] = None
    project_id: Optional[int] = None
    task_id: Optional[int] = None
    subtask_id: Optional[int] = None


class NoteUpdate(BaseModel):
    """Content only; a note's attachment never changes."""
    content: Optional[str] = Field(None, min_length=1)
    tags: Optional[str] = Field(None, max_length=255)
    decoration_color: Optional[str] = Field(None, pattern=COLOR_PATTERN)

    @field_validator("content")
    @classmethod
    def content_not_null(cls, value):
        return reject_null(value)


class NoteResponse(BaseModel):
    id: int
    user_id: int
    company_id: Optional[int]
    project_id: Optional[int]
    task_id: Optional[int]
    subtask_id: Optional[int]
    content: str
    tags: Optional[str]
    decoration_color: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
