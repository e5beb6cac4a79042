"""
Note Model

Free-form content written by a user and attached to at most one of
company / project / task / subtask. A note with no attachment is personal
and only visible to its author.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint, event
from sqlalchemy.orm import relationship
from datetime import datetime
from typing import Optional
from taskhub.database import Base
from taskhub.models.scope import Scope, single_scope, exclusive_scope_check


class Note(Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Author
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Attachment columns - at most one is set
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True)
    subtask_id = Column(Integer, ForeignKey("subtasks.id", ondelete="CASCADE"), nullable=True)

    content = Column(Text, nullable=False)
    tags = Column(String(255), nullable=True)
    decoration_color = Column(String(7), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    author = relationship("User", back_populates="notes")
    company = relationship("Company", back_populates="notes")
    project = relationship("Project", back_populates="notes")
    task = relationship("Task", back_populates="notes")
    subtask = relationship("Subtask", back_populates="notes")

    __table_args__ = (
        CheckConstraint(exclusive_scope_check(allow_empty=True), name="ck_note_single_attachment"),
    )

    def __repr__(self):
        return f"<Note {self.id} by user={self.user_id}>"

    @property
    def attachment(self) -> Optional[Scope]:
        return single_scope(
            self.company_id, self.project_id, self.task_id, self.subtask_id,
            allow_empty=True
        )


@event.listens_for(Note, "before_insert")
@event.listens_for(Note, "before_update")
def validate_note_attachment(mapper, connection, target):
    """Reject notes attached to more than one resource."""
    single_scope(
        target.company_id, target.project_id, target.task_id, target.subtask_id,
        allow_empty=True
    )
