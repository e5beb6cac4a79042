"""
Scope exclusivity for grants and notes.

A ResourceGrant is scoped to exactly one of company/project/task/subtask.
A Note is attached to at most one of them (none = personal note).
"""
from typing import Optional, Tuple

from taskhub.core.exceptions import InvalidResourceScope
from taskhub.models.enums import ResourceKind

# Column name on grant/note rows for each scopable kind, outermost first
SCOPE_COLUMNS = {
    ResourceKind.COMPANY: "company_id",
    ResourceKind.PROJECT: "project_id",
    ResourceKind.TASK: "task_id",
    ResourceKind.SUBTASK: "subtask_id",
}

Scope = Tuple[ResourceKind, int]


def single_scope(
    company_id: Optional[int] = None,
    project_id: Optional[int] = None,
    task_id: Optional[int] = None,
    subtask_id: Optional[int] = None,
    allow_empty: bool = False,
) -> Optional[Scope]:
    """
    Return the one (kind, id) pair that is set.

    Raises InvalidResourceScope if more than one is set, or if none is set
    and allow_empty is False.
    """
    values = {
        ResourceKind.COMPANY: company_id,
        ResourceKind.PROJECT: project_id,
        ResourceKind.TASK: task_id,
        ResourceKind.SUBTASK: subtask_id,
    }
    present = [(kind, value) for kind, value in values.items() if value is not None]

    if len(present) > 1:
        raise InvalidResourceScope("scope_not_exclusive")
    if not present:
        if allow_empty:
            return None
        raise InvalidResourceScope("scope_missing")
    return present[0]


def scope_columns(kind: ResourceKind, resource_id: int) -> dict:
    """Keyword arguments that scope a grant/note row to one resource."""
    if kind not in SCOPE_COLUMNS:
        raise InvalidResourceScope("kind_not_scopable")
    return {SCOPE_COLUMNS[kind]: resource_id}


def exclusive_scope_check(allow_empty: bool) -> str:
    """SQL CHECK expression mirroring single_scope()."""
    columns = list(SCOPE_COLUMNS.values())
    clauses = []
    for column in columns:
        parts = [f"{c} IS NOT NULL" if c == column else f"{c} IS NULL" for c in columns]
        clauses.append("(" + " AND ".join(parts) + ")")
    if allow_empty:
        clauses.append("(" + " AND ".join(f"{c} IS NULL" for c in columns) + ")")
    return " OR ".join(clauses)
