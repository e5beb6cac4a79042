"""
Database Models

Hierarchy: Company -> Project -> Task -> Subtask, with Notes attachable to
any level. CompanyMembership and ResourceGrant are the only source of truth
for who can touch what.
"""
from taskhub.models.enums import ResourceKind, AccessTier, TaskStatus
from taskhub.models.role import Role
from taskhub.models.user import User
from taskhub.models.company import Company, CompanyMembership
from taskhub.models.project import Project
from taskhub.models.task import Task, Subtask
from taskhub.models.grant import ResourceGrant
from taskhub.models.note import Note

__all__ = [
    "ResourceKind",
    "AccessTier",
    "TaskStatus",
    "Role",
    "User",
    "Company",
    "CompanyMembership",
    "Project",
    "Task",
    "Subtask",
    "ResourceGrant",
    "Note",
]
