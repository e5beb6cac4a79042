"""
Resource Hierarchy Index

Read-only knowledge of parent/child relationships:

    Company <- Project <- Task <- Subtask
    Note -> at most one of the above

ancestors() walks from a concrete resource up to its company in one query
per kind, so call sites never repeat the joins. descendants() walks the
other way and is used for grant cleanup when a resource is deleted.
"""
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from taskhub.models import Company, Project, Task, Subtask, Note
from taskhub.models.enums import ResourceKind
from taskhub.models.scope import Scope


class HierarchyIndex:
    """Parent/child lookups backed by the database session."""

    def __init__(self, db: Session):
        self.db = db

    def ancestors(self, kind: ResourceKind, resource_id: int) -> List[Scope]:
        """
        Ordered chain from the resource itself up to its company.

        Returns an empty list when the resource does not exist. For notes the
        chain continues through the attachment; a personal note yields only
        itself.
        """
        if kind == ResourceKind.COMPANY:
            row = self.db.query(Company.id).filter(Company.id == resource_id).first()
            return [(ResourceKind.COMPANY, resource_id)] if row else []

        if kind == ResourceKind.PROJECT:
            row = self.db.query(Project.company_id).filter(Project.id == resource_id).first()
            if row is None:
                return []
            return [
                (ResourceKind.PROJECT, resource_id),
                (ResourceKind.COMPANY, row.company_id),
            ]

        if kind == ResourceKind.TASK:
            row = (
                self.db.query(Task.project_id, Project.company_id)
                .join(Project, Task.project_id == Project.id)
                .filter(Task.id == resource_id)
                .first()
            )
            if row is None:
                return []
            return [
                (ResourceKind.TASK, resource_id),
                (ResourceKind.PROJECT, row.project_id),
                (ResourceKind.COMPANY, row.company_id),
            ]

        if kind == ResourceKind.SUBTASK:
            row = (
                self.db.query(Subtask.task_id, Task.project_id, Project.company_id)
                .join(Task, Subtask.task_id == Task.id)
                .join(Project, Task.project_id == Project.id)
                .filter(Subtask.id == resource_id)
                .first()
            )
            if row is None:
                return []
            return [
                (ResourceKind.SUBTASK, resource_id),
                (ResourceKind.TASK, row.task_id),
                (ResourceKind.PROJECT, row.project_id),
                (ResourceKind.COMPANY, row.company_id),
            ]

        if kind == ResourceKind.NOTE:
            note = self.note(resource_id)
            if note is None:
                return []
            chain = [(ResourceKind.NOTE, resource_id)]
            attachment = note.attachment
            if attachment is not None:
                chain.extend(self.ancestors(*attachment))
            return chain

        raise ValueError(f"Unknown resource kind: {kind}")

    def note(self, note_id: int) -> Optional[Note]:
        return self.db.get(Note, note_id)

    def descendants(self, kind: ResourceKind, resource_id: int) -> Dict[ResourceKind, List[int]]:
        """
        Every grant-scopable resource in the subtree, the root included.

        Notes are not grant scopes and are left out.
        """
        subtree: Dict[ResourceKind, List[int]] = {
            ResourceKind.COMPANY: [],
            ResourceKind.PROJECT: [],
            ResourceKind.TASK: [],
            ResourceKind.SUBTASK: [],
        }
        if kind not in subtree:
            raise ValueError(f"{kind.value} has no grant subtree")

        subtree[kind].append(resource_id)

        if kind == ResourceKind.COMPANY:
            subtree[ResourceKind.PROJECT] = [
                row.id for row in self.db.query(Project.id).filter(Project.company_id == resource_id)
            ]
        if kind in (ResourceKind.COMPANY, ResourceKind.PROJECT) and subtree[ResourceKind.PROJECT]:
            subtree[ResourceKind.TASK] = [
                row.id for row in
                self.db.query(Task.id).filter(Task.project_id.in_(subtree[ResourceKind.PROJECT]))
            ]
        if kind != ResourceKind.SUBTASK and subtree[ResourceKind.TASK]:
            subtree[ResourceKind.SUBTASK] = [
                row.id for row in
                self.db.query(Subtask.id).filter(Subtask.task_id.in_(subtree[ResourceKind.TASK]))
            ]

        return subtree
