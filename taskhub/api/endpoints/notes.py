"""
Note Endpoints

A note is attached to at most one of company/project/task/subtask, or to
nothing (personal). The author can always read, edit and delete their own
note. Other users reach an attached note through their standing on the
attachment and need level <= 2 for any note operation.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from taskhub.database import get_db
from taskhub.models import Note, User
from taskhub.models.enums import ResourceKind
from taskhub.models.scope import single_scope
from taskhub.schemas.note import NoteCreate, NoteUpdate, NoteResponse
from taskhub.api.deps import get_current_user, get_gate
from taskhub.core.permissions import AuthorizationGate, Operation
from taskhub.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/notes", tags=["notes"])


@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    note_data: NoteCreate,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db)
):
    """
    Create a note. Attaching to a resource needs CREATE_NOTE there.

    More than one attachment is rejected before anything is written.
    """
    attachment = single_scope(
        note_data.company_id, note_data.project_id, note_data.task_id, note_data.subtask_id,
        allow_empty=True
    )
    if attachment is not None:
        gate.authorize(current_user.id, attachment[0], attachment[1], Operation.CREATE_NOTE)

    note = Note(user_id=current_user.id, **note_data.model_dump())
    db.add(note)
    db.commit()

    logger.info(f"Note created: {note.id} by user {current_user.id}")
    return note


@router.get("", response_model=List[NoteResponse])
async def list_my_notes(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Notes written by the caller, newest first."""
    return (
        db.query(Note)
        .filter(Note.user_id == current_user.id)
        .order_by(Note.created_at.desc(), Note.id.desc())
        .all()
    )


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: int,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db)
):
    gate.authorize(current_user.id, ResourceKind.NOTE, note_id, Operation.VIEW)
    return db.get(Note, note_id)


@router.patch("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: int,
    note_data: NoteUpdate,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db)
):
    gate.authorize(current_user.id, ResourceKind.NOTE, note_id, Operation.UPDATE)
    note = db.get(Note, note_id)

    for field, value in note_data.model_dump(exclude_unset=True).items():
        setattr(note, field, value)

    db.commit()
    return note


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: int,
    current_user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_gate),
    db: Session = Depends(get_db)
):
    gate.authorize(current_user.id, ResourceKind.NOTE, note_id, Operation.DELETE)
    db.delete(db.get(Note, note_id))
    db.commit()

    logger.info(f"Note deleted: {note_id} by user {current_user.id}")
    return None
