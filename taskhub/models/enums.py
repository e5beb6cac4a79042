"""
Shared enumerations for models and the access engine.
"""
import enum


class ResourceKind(str, enum.Enum):
    """Levels of the Company -> Project -> Task -> Subtask hierarchy, plus notes."""
    COMPANY = "company"
    PROJECT = "project"
    TASK = "task"
    SUBTASK = "subtask"
    NOTE = "note"


class AccessTier(str, enum.Enum):
    """
    Coarse capability flag attached to a grant.

    Orthogonal to role level: it never changes an authorization decision,
    it only describes the grant. Ordered strongest first.
    """
    FULL = "full"
    LIMITED = "limited"
    RESTRICTED = "restricted"

    @property
    def rank(self) -> int:
        return list(AccessTier).index(self)


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
