"""
Membership / Grant Schemas
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from taskhub.models.enums import AccessTier, ResourceKind


class MemberAdd(BaseModel):
    user_id: int


class MemberResponse(BaseModel):
    """A user's row on one resource. role_level is None for a role-less grant."""
    user_id: int
    resource_kind: ResourceKind
    resource_id: int
    role_level: Optional[int]
    access_tier: AccessTier
    created_at: datetime


class RoleResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    level: int
    parent_role_id: Optional[int]

    class Config:
        from_attributes = True
