"""
Task Endpoints

RBAC (resolved level on the task, lower is stronger):
- Create: <= 3 on the owning project
- View: any grant path
- Update / create subtasks: <= 3
- Manage members: <= 2
- Delete: Owner (== 1)
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from taskhub.database import get_db
from taskhub.models import Task, Subtask, User
from taskhub.models.enums import ResourceKind, TaskStatus
from taskhub.schemas.task import TaskCreate, TaskUpdate, TaskResponse, SubtaskResponse
from taskhub.api.deps import get_current_user, get_gate, get_grant_service
from taskhub.core.permissions import AuthorizationGate, Operation
from taskhub.core.grant_service import GrantMutationService
from taskhub.core.exceptions import UserNotFoundError
from taskhub.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


def require_assignee(db: Session, user_id):
    if user_id is not None and db.get(User, user_id) is None:
        raise UserNotFoundError(user_id)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    grants: GrantMutationService = Depends(get_grant_service),
    db: Session = Depends(get_db)
):
    """Create a pending task. Unassigned tasks go to the creator."""
    gate.authorize(current_user.id, ResourceKind.PROJECT, task_data.project_id, Operation.CREATE_CHILD)

    values = task_data.model_dump()
    if values["assigned_to"] is None:
        values["assigned_to"] = current_user.id
    require_assignee(db, values["assigned_to"])

    task = Task(status=TaskStatus.PENDING, **values)
    db.add(task)
    db.flush()

    grants.grant_creator(current_user.id, ResourceKind.TASK, task.id)
    db.commit()

    logger.info(f"Task created: {task.id} in project {task.project_id} by user {current_user.id}")
    return task


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db)
):
    gate.authorize(current_user.id, ResourceKind.TASK, task_id, Operation.VIEW)
    return db.get(Task, task_id)


@router.get("/{task_id}/subtasks", response_model=List[SubtaskResponse])
async def list_task_subtasks(
    task_id: int,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db)
):
    """Subtasks of the task that the caller can view."""
    gate.authorize(current_user.id, ResourceKind.TASK, task_id, Operation.VIEW)

    subtasks = (
        db.query(Subtask)
        .filter(Subtask.task_id == task_id)
        .order_by(Subtask.created_at, Subtask.id)
        .all()
    )
    return [
        subtask for subtask in subtasks
        if gate.is_allowed(current_user.id, ResourceKind.SUBTASK, subtask.id, Operation.VIEW)
    ]


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    task_data: TaskUpdate,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db)
):
    gate.authorize(current_user.id, ResourceKind.TASK, task_id, Operation.UPDATE)
    task = db.get(Task, task_id)

    changes = task_data.model_dump(exclude_unset=True)
    if "assigned_to" in changes:
        require_assignee(db, changes["assigned_to"])
    for field, value in changes.items():
        setattr(task, field, value)

    db.commit()
    logger.info(f"Task updated: {task_id} by user {current_user.id}")
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    grants: GrantMutationService = Depends(get_grant_service),
    db: Session = Depends(get_db)
):
    gate.authorize(current_user.id, ResourceKind.TASK, task_id, Operation.DELETE)

    removed = grants.cascade_delete_grants(ResourceKind.TASK, task_id)
    db.delete(db.get(Task, task_id))
    db.commit()

    logger.info(f"Task deleted: {task_id} by user {current_user.id} ({removed} grants removed)")
    return None
