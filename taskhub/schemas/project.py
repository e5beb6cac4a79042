"""
Project Schemas

Request/response models for project operations.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

COLOR_PATTERN = "^#[0-9A-Fa-f]{6}$"


def reject_null(value):
    """PATCH may omit a required column but may not clear it."""
    if value is None:
        raise ValueError("may not be null")
    return value


class ProjectBase(BaseModel):
    """Base project schema."""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    decoration_color: Optional[str] = Field(None, pattern=COLOR_PATTERN)


class ProjectCreate(ProjectBase):
    """Schema for creating a project inside a company."""
    company_id: int


class ProjectUpdate(BaseModel):
    """Schema for updating a project. All fields optional."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    decoration_color: Optional[str] = Field(None, pattern=COLOR_PATTERN)

    @field_validator("title")
    @classmethod
    def title_not_null(cls, value):
        return reject_null(value)


class ProjectResponse(ProjectBase):
    id: int
    company_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
