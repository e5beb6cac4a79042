"""
Project Endpoints

RBAC (resolved level on the project, lower is stronger):
- Create: <= 2 on the owning company
- View: any grant path
- Update / manage members: <= 2
- Create tasks: <= 3
- Delete: Owner (== 1)
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from taskhub.database import get_db
from taskhub.models import Project, Task, User
from taskhub.models.enums import ResourceKind
from taskhub.schemas.project import ProjectCreate, ProjectUpdate, ProjectResponse
from taskhub.schemas.task import TaskResponse
from taskhub.api.deps import get_current_user, get_gate, get_grant_service
from taskhub.core.permissions import AuthorizationGate, Operation
from taskhub.core.grant_service import GrantMutationService
from taskhub.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    grants: GrantMutationService = Depends(get_grant_service),
    db: Session = Depends(get_db)
):
    """
    Create a project in a company.

    The creator gets an Owner grant on the new project, so they can delete
    it even though their company role would not reach that far.
    """
    gate.authorize(current_user.id, ResourceKind.COMPANY, project_data.company_id, Operation.CREATE_CHILD)

    project = Project(**project_data.model_dump())
    db.add(project)
    db.flush()

    grants.grant_creator(current_user.id, ResourceKind.PROJECT, project.id)
    db.commit()

    logger.info(f"Project created: {project.id} in company {project.company_id} by user {current_user.id}")
    return project


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db)
):
    gate.authorize(current_user.id, ResourceKind.PROJECT, project_id, Operation.VIEW)
    return db.get(Project, project_id)


@router.get("/{project_id}/tasks", response_model=List[TaskResponse])
async def list_project_tasks(
    project_id: int,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db)
):
    """Tasks in the project that the caller can view."""
    gate.authorize(current_user.id, ResourceKind.PROJECT, project_id, Operation.VIEW)

    tasks = (
        db.query(Task)
        .filter(Task.project_id == project_id)
        .order_by(Task.created_at.desc(), Task.id.desc())
        .all()
    )
    return [
        task for task in tasks
        if gate.is_allowed(current_user.id, ResourceKind.TASK, task.id, Operation.VIEW)
    ]


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: int,
    project_data: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db)
):
    gate.authorize(current_user.id, ResourceKind.PROJECT, project_id, Operation.UPDATE)
    project = db.get(Project, project_id)

    for field, value in project_data.model_dump(exclude_unset=True).items():
        setattr(project, field, value)

    db.commit()
    logger.info(f"Project updated: {project_id} by user {current_user.id}")
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    grants: GrantMutationService = Depends(get_grant_service),
    db: Session = Depends(get_db)
):
    """Delete a project, its tasks, subtasks and notes, and every grant on them."""
    gate.authorize(current_user.id, ResourceKind.PROJECT, project_id, Operation.DELETE)

    removed = grants.cascade_delete_grants(ResourceKind.PROJECT, project_id)
    db.delete(db.get(Project, project_id))
    db.commit()

    logger.info(f"Project deleted: {project_id} by user {current_user.id} ({removed} grants removed)")
    return None
