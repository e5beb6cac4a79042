"""
User Schemas
"""
from pydantic import BaseModel
from datetime import datetime

from taskhub.models.enums import AccessTier


class UserResponse(BaseModel):
    id: int
    login: str
    user_name: str
    email: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserCompanyResponse(BaseModel):
    """One of the caller's company memberships."""
    company_id: int
    company_name: str
    name_alias: str
    role_level: int
    access_tier: AccessTier
