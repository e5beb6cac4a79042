"""
ResourceGrant Model

Fine-grained access record: a user holds a role at exactly one level of the
hierarchy (company, project, task or subtask).

INVARIANT: exactly one scope column is non-null. Enforced before
persistence (mapper events below) and by a CHECK constraint in the database.
"""
from sqlalchemy import (
    Column, Integer, DateTime, ForeignKey, Index, CheckConstraint, Enum as SQLEnum, event
)
from sqlalchemy.orm import relationship
from datetime import datetime
from taskhub.database import Base
from taskhub.models.enums import AccessTier
from taskhub.models.scope import Scope, single_scope, exclusive_scope_check


class ResourceGrant(Base):
    __tablename__ = "resource_grants"

    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Scope columns - exactly one is set
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True)
    subtask_id = Column(Integer, ForeignKey("subtasks.id", ondelete="CASCADE"), nullable=True)

    role_id = Column(Integer, ForeignKey("roles.id", ondelete="SET NULL"), nullable=True)
    access_tier = Column(SQLEnum(AccessTier), nullable=False, default=AccessTier.LIMITED)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="grants")
    role = relationship("Role", lazy="joined")

    __table_args__ = (
        CheckConstraint(exclusive_scope_check(allow_empty=False), name="ck_grant_single_scope"),
        # One grant per user per resource. NULLs are distinct, so each index
        # only constrains rows scoped at its own level.
        Index('uq_grant_user_company', 'user_id', 'company_id', unique=True),
        Index('uq_grant_user_project', 'user_id', 'project_id', unique=True),
        Index('uq_grant_user_task', 'user_id', 'task_id', unique=True),
        Index('uq_grant_user_subtask', 'user_id', 'subtask_id', unique=True),
    )

    def __repr__(self):
        kind, resource_id = self.scope
        return f"<ResourceGrant user={self.user_id} {kind.value}={resource_id} role={self.role_id}>"

    @property
    def scope(self) -> Scope:
        return single_scope(self.company_id, self.project_id, self.task_id, self.subtask_id)

    @property
    def role_level(self):
        """Role level, or None for a role-less grant."""
        return self.role.level if self.role is not None else None


@event.listens_for(ResourceGrant, "before_insert")
@event.listens_for(ResourceGrant, "before_update")
def validate_grant_scope(mapper, connection, target):
    """Reject rows that violate scope exclusivity before they reach the database."""
    single_scope(target.company_id, target.project_id, target.task_id, target.subtask_id)
