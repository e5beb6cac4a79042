"""
User Endpoints

The caller's own profile and the companies they belong to.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from taskhub.database import get_db
from taskhub.models import User, Company
from taskhub.schemas.user import UserResponse, UserCompanyResponse
from taskhub.api.deps import get_current_user
from taskhub.core.grants import GrantStore

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("/me/companies", response_model=List[UserCompanyResponse])
async def list_my_companies(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Companies where the caller holds a membership, with their role level."""
    memberships = GrantStore(db).memberships_for_user(current_user.id)
    result = []
    for membership in memberships:
        company = db.get(Company, membership.company_id)
        result.append(UserCompanyResponse(
            company_id=company.id,
            company_name=company.name,
            name_alias=company.name_alias,
            role_level=membership.role_level,
            access_tier=membership.access_tier
        ))
    return result
