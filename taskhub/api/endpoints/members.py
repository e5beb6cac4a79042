"""
Membership Endpoints

The same three routes for every grantable kind:

    GET    /{kind}/{id}/members            caller needs VIEW
    POST   /{kind}/{id}/members            add_grant (MANAGE_MEMBERS)
    DELETE /{kind}/{id}/members/{user_id}  remove_grant (self, or peers and below)

Company members are CompanyMemberships; every other kind lists
ResourceGrants scoped exactly to the resource.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from taskhub.database import get_db
from taskhub.models import User
from taskhub.models.enums import ResourceKind
from taskhub.schemas.grant import MemberAdd, MemberResponse
from taskhub.api.deps import get_current_user, get_gate, get_grant_service
from taskhub.core.grants import GrantRow, GrantStore
from taskhub.core.permissions import AuthorizationGate, Operation
from taskhub.core.grant_service import GrantMutationService


def to_member(row: GrantRow, kind: ResourceKind, resource_id: int) -> MemberResponse:
    return MemberResponse(
        user_id=row.user_id,
        resource_kind=kind,
        resource_id=resource_id,
        role_level=row.role_level,
        access_tier=row.access_tier,
        created_at=row.created_at
    )


def build_members_router(kind: ResourceKind, prefix: str) -> APIRouter:
    """Member routes for one resource kind, mounted under prefix."""
    router = APIRouter(prefix=prefix, tags=["members"])

    @router.get("/{resource_id}/members", response_model=List[MemberResponse])
    async def list_members(
        resource_id: int,
        current_user: User = Depends(get_current_user),
        gate: AuthorizationGate = Depends(get_gate),
        db: Session = Depends(get_db)
    ):
        gate.authorize(current_user.id, kind, resource_id, Operation.VIEW)
        return [to_member(row, kind, resource_id) for row in GrantStore(db).members_of(kind, resource_id)]

    @router.post(
        "/{resource_id}/members",
        response_model=MemberResponse,
        status_code=status.HTTP_201_CREATED
    )
    async def add_member(
        resource_id: int,
        member: MemberAdd,
        current_user: User = Depends(get_current_user),
        grants: GrantMutationService = Depends(get_grant_service),
        db: Session = Depends(get_db)
    ):
        row = grants.add_grant(current_user.id, member.user_id, kind, resource_id)
        db.commit()
        return to_member(row, kind, resource_id)

    @router.delete("/{resource_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def remove_member(
        resource_id: int,
        user_id: int,
        current_user: User = Depends(get_current_user),
        grants: GrantMutationService = Depends(get_grant_service),
        db: Session = Depends(get_db)
    ):
        grants.remove_grant(current_user.id, user_id, kind, resource_id)
        db.commit()
        return None

    return router


routers = [
    build_members_router(ResourceKind.COMPANY, "/companies"),
    build_members_router(ResourceKind.PROJECT, "/projects"),
    build_members_router(ResourceKind.TASK, "/tasks"),
    build_members_router(ResourceKind.SUBTASK, "/subtasks"),
]
