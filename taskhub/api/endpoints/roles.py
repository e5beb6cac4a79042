"""
Role Catalog Endpoint
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from taskhub.database import get_db
from taskhub.models import Role, User
from taskhub.schemas.grant import RoleResponse
from taskhub.api.deps import get_current_user

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("", response_model=List[RoleResponse])
async def list_roles(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """All roles, strongest first."""
    return db.query(Role).order_by(Role.level, Role.id).all()
