"""
Subtask Endpoints

RBAC (resolved level on the subtask, lower is stronger):
- Create: <= 3 on the owning task
- View: any grant path
- Update: <= 3
- Manage members: <= 2
- Delete: Owner (== 1)
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskhub.database import get_db
from taskhub.models import Subtask, User
from taskhub.models.enums import ResourceKind, TaskStatus
from taskhub.schemas.task import SubtaskCreate, SubtaskUpdate, SubtaskResponse
from taskhub.api.deps import get_current_user, get_gate, get_grant_service
from taskhub.api.endpoints.tasks import require_assignee
from taskhub.core.permissions import AuthorizationGate, Operation
from taskhub.core.grant_service import GrantMutationService
from taskhub.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/subtasks", tags=["subtasks"])


@router.post("", response_model=SubtaskResponse, status_code=status.HTTP_201_CREATED)
async def create_subtask(
    subtask_data: SubtaskCreate,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    grants: GrantMutationService = Depends(get_grant_service),
    db: Session = Depends(get_db)
):
    gate.authorize(current_user.id, ResourceKind.TASK, subtask_data.task_id, Operation.CREATE_CHILD)

    values = subtask_data.model_dump()
    if values["assigned_to"] is None:
        values["assigned_to"] = current_user.id
    require_assignee(db, values["assigned_to"])

    subtask = Subtask(status=TaskStatus.PENDING, **values)
    db.add(subtask)
    db.flush()

    grants.grant_creator(current_user.id, ResourceKind.SUBTASK, subtask.id)
    db.commit()

    logger.info(f"Subtask created: {subtask.id} in task {subtask.task_id} by user {current_user.id}")
    return subtask


@router.get("/{subtask_id}", response_model=SubtaskResponse)
async def get_subtask(
    subtask_id: int,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db)
):
    gate.authorize(current_user.id, ResourceKind.SUBTASK, subtask_id, Operation.VIEW)
    return db.get(Subtask, subtask_id)


@router.patch("/{subtask_id}", response_model=SubtaskResponse)
async def update_subtask(
    subtask_id: int,
    subtask_data: SubtaskUpdate,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db)
):
    gate.authorize(current_user.id, ResourceKind.SUBTASK, subtask_id, Operation.UPDATE)
    subtask = db.get(Subtask, subtask_id)

    changes = subtask_data.model_dump(exclude_unset=True)
    if "assigned_to" in changes:
        require_assignee(db, changes["assigned_to"])
    for field, value in changes.items():
        setattr(subtask, field, value)

    db.commit()
    return subtask


@router.delete("/{subtask_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subtask(
    subtask_id: int,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    grants: GrantMutationService = Depends(get_grant_service),
    db: Session = Depends(get_db)
):
    gate.authorize(current_user.id, ResourceKind.SUBTASK, subtask_id, Operation.DELETE)

    removed = grants.cascade_delete_grants(ResourceKind.SUBTASK, subtask_id)
    db.delete(db.get(Subtask, subtask_id))
    db.commit()

    logger.info(f"Subtask deleted: {subtask_id} by user {current_user.id} ({removed} grants removed)")
    return None
