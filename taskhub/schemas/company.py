"""
Company Schemas

Request/response models for company operations.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from taskhub.schemas.project import ProjectResponse, reject_null


class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    contact_info: Optional[str] = Field(None, max_length=255)


class CompanyUpdate(BaseModel):
    """Schema for updating a company. All fields optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    contact_info: Optional[str] = Field(None, max_length=255)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, value):
        return reject_null(value)


class CompanyResponse(BaseModel):
    id: int
    name: str
    name_alias: str
    description: Optional[str]
    contact_info: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class CompanyDetailResponse(CompanyResponse):
    """Company with its projects and the caller's standing."""
    projects: List[ProjectResponse] = []
    role_level: int
