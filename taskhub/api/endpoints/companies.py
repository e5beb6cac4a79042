"""
Company Endpoints

The company is the tenant boundary. Creating one is not gated: the creator
becomes its Owner through an automatic membership.

RBAC (resolved level, lower is stronger):
- View: any membership or company-scoped grant
- Update / create projects / manage members: <= 2
- Delete: Owner (== 1), removes the whole subtree and every grant in it
"""
import random
import re

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskhub.database import get_db
from taskhub.models import Company, Project, User
from taskhub.models.enums import ResourceKind
from taskhub.schemas.company import (
    CompanyCreate,
    CompanyUpdate,
    CompanyResponse,
    CompanyDetailResponse
)
from taskhub.schemas.project import ProjectResponse
from taskhub.api.deps import get_current_user, get_gate, get_grant_service
from taskhub.core.permissions import AuthorizationGate, Operation
from taskhub.core.grant_service import GrantMutationService
from taskhub.core.exceptions import InvalidInputError
from taskhub.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/companies", tags=["companies"])

MAX_ALIAS_ATTEMPTS = 10


def alias_from_name(name: str) -> str:
    """Lowercase alphanumeric identifier derived from a display name."""
    alias = re.sub(r"[^a-z0-9]", "", name.lower())
    return alias[:90] or "company"


def generate_name_alias(db: Session, name: str) -> str:
    """
    Unique alias for a new company.

    The bare alias is tried first; on collision a random numeric suffix is
    appended until a free one is found.
    """
    base = alias_from_name(name)
    candidate = base
    for _ in range(MAX_ALIAS_ATTEMPTS):
        taken = db.query(Company.id).filter(Company.name_alias == candidate).first()
        if not taken:
            return candidate
        candidate = f"{base}{random.randint(1, 999)}"
    raise InvalidInputError("Could not generate a unique company alias")


@router.post("", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def create_company(
    company_data: CompanyCreate,
    current_user: User = Depends(get_current_user),
    grants: GrantMutationService = Depends(get_grant_service),
    db: Session = Depends(get_db)
):
    company = Company(
        name=company_data.name,
        name_alias=generate_name_alias(db, company_data.name),
        description=company_data.description,
        contact_info=company_data.contact_info
    )
    db.add(company)
    db.flush()

    grants.grant_creator(current_user.id, ResourceKind.COMPANY, company.id)
    db.commit()

    logger.info(f"Company created: {company.id} ({company.name_alias}) by user {current_user.id}")
    return company


@router.get("/{company_id}", response_model=CompanyDetailResponse)
async def get_company(
    company_id: int,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db)
):
    """Company details, the projects the caller can see, and the caller's level."""
    grant = gate.authorize(current_user.id, ResourceKind.COMPANY, company_id, Operation.VIEW)
    company = db.get(Company, company_id)

    projects = (
        db.query(Project)
        .filter(Project.company_id == company_id)
        .order_by(Project.created_at.desc())
        .all()
    )
    visible = [
        ProjectResponse.model_validate(project) for project in projects
        if gate.is_allowed(current_user.id, ResourceKind.PROJECT, project.id, Operation.VIEW)
    ]

    return CompanyDetailResponse(
        **CompanyResponse.model_validate(company).model_dump(),
        projects=visible,
        role_level=grant.role_level
    )


@router.patch("/{company_id}", response_model=CompanyResponse)
async def update_company(
    company_id: int,
    company_data: CompanyUpdate,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db)
):
    gate.authorize(current_user.id, ResourceKind.COMPANY, company_id, Operation.UPDATE)
    company = db.get(Company, company_id)

    for field, value in company_data.model_dump(exclude_unset=True).items():
        setattr(company, field, value)

    db.commit()
    logger.info(f"Company updated: {company_id} by user {current_user.id}")
    return company


@router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_company(
    company_id: int,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    grants: GrantMutationService = Depends(get_grant_service),
    db: Session = Depends(get_db)
):
    """
    Delete a company with all its projects, tasks, subtasks and notes.

    Grant cleanup and the delete commit together.
    """
    gate.authorize(current_user.id, ResourceKind.COMPANY, company_id, Operation.DELETE)

    removed = grants.cascade_delete_grants(ResourceKind.COMPANY, company_id)
    db.delete(db.get(Company, company_id))
    db.commit()

    logger.info(f"Company deleted: {company_id} by user {current_user.id} ({removed} grants removed)")
    return None
