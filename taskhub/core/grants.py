"""
Grant Store

Query and write access to CompanyMembership and ResourceGrant rows. These
two tables are the only record of who can touch what; nothing here caches
or derives privilege, that is the resolver's job.

CONCURRENCY: ensure_membership/ensure_grant run check-then-insert inside a
SAVEPOINT. Two requests racing on the same (user, resource) pair collide on
the unique indexes; the loser rolls back its savepoint and returns the row
the winner wrote.

NOTE: Every method flushes at most. Committing is the caller's decision.
"""
from typing import Dict, Iterable, List, Optional, Union

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskhub.models import CompanyMembership, ResourceGrant
from taskhub.models.enums import AccessTier, ResourceKind
from taskhub.models.role import Role
from taskhub.models.scope import SCOPE_COLUMNS, Scope, scope_columns
from taskhub.utils.logging import get_logger

logger = get_logger(__name__)

GrantRow = Union[CompanyMembership, ResourceGrant]


class GrantStore:
    """Persistence for company memberships and resource-scoped grants."""

    def __init__(self, db: Session):
        self.db = db

    # ---- memberships -------------------------------------------------

    def membership(self, user_id: int, company_id: int, for_update: bool = False) -> Optional[CompanyMembership]:
        query = self.db.query(CompanyMembership).filter(
            CompanyMembership.user_id == user_id,
            CompanyMembership.company_id == company_id
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def memberships_for_user(self, user_id: int) -> List[CompanyMembership]:
        return (
            self.db.query(CompanyMembership)
            .filter(CompanyMembership.user_id == user_id)
            .order_by(CompanyMembership.company_id)
            .all()
        )

    def ensure_membership(
        self,
        user_id: int,
        company_id: int,
        role: Role,
        access_tier: AccessTier
    ) -> CompanyMembership:
        """Return the existing membership, or create one."""
        existing = self.membership(user_id, company_id, for_update=True)
        if existing is not None:
            return existing

        try:
            with self.db.begin_nested():
                row = CompanyMembership(
                    user_id=user_id,
                    company_id=company_id,
                    role=role,
                    access_tier=access_tier
                )
                self.db.add(row)
            return row
        except IntegrityError:
            logger.info(f"Concurrent membership insert for user {user_id} company {company_id}")
            existing = self.membership(user_id, company_id)
            if existing is None:
                raise
            return existing

    def delete_memberships(self, company_id: int) -> int:
        return (
            self.db.query(CompanyMembership)
            .filter(CompanyMembership.company_id == company_id)
            .delete(synchronize_session="fetch")
        )

    # ---- resource grants ---------------------------------------------

    def grant_for(
        self,
        user_id: int,
        kind: ResourceKind,
        resource_id: int,
        for_update: bool = False
    ) -> Optional[ResourceGrant]:
        """The grant scoped exactly to (kind, resource_id), if any."""
        query = (
            self.db.query(ResourceGrant)
            .filter(ResourceGrant.user_id == user_id)
            .filter_by(**scope_columns(kind, resource_id))
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def grants_on(self, user_id: int, scopes: Iterable[Scope]) -> List[ResourceGrant]:
        """
        Every grant the user holds on any of the given scopes.

        One query regardless of how many scopes are asked for.
        """
        clauses = [
            getattr(ResourceGrant, SCOPE_COLUMNS[kind]) == resource_id
            for kind, resource_id in scopes
            if kind in SCOPE_COLUMNS
        ]
        if not clauses:
            return []
        return (
            self.db.query(ResourceGrant)
            .filter(ResourceGrant.user_id == user_id, or_(*clauses))
            .all()
        )

    def ensure_grant(
        self,
        user_id: int,
        kind: ResourceKind,
        resource_id: int,
        role: Role,
        access_tier: AccessTier
    ) -> ResourceGrant:
        """Return the existing grant on exactly this resource, or create one."""
        columns = scope_columns(kind, resource_id)

        existing = self.grant_for(user_id, kind, resource_id, for_update=True)
        if existing is not None:
            return existing

        try:
            with self.db.begin_nested():
                row = ResourceGrant(
                    user_id=user_id,
                    role=role,
                    access_tier=access_tier,
                    **columns
                )
                self.db.add(row)
            return row
        except IntegrityError:
            logger.info(f"Concurrent grant insert for user {user_id} on {kind.value} {resource_id}")
            existing = self.grant_for(user_id, kind, resource_id)
            if existing is None:
                raise
            return existing

    def delete_grants_for_scopes(self, subtree: Dict[ResourceKind, List[int]]) -> int:
        """Delete every grant scoped to any id in the subtree. Returns the count."""
        clauses = [
            getattr(ResourceGrant, SCOPE_COLUMNS[kind]).in_(ids)
            for kind, ids in subtree.items()
            if ids
        ]
        if not clauses:
            return 0
        return (
            self.db.query(ResourceGrant)
            .filter(or_(*clauses))
            .delete(synchronize_session="fetch")
        )

    # ---- shared ------------------------------------------------------

    def rows_for(self, user_id: int, kind: ResourceKind, resource_id: int, for_update: bool = False) -> List[GrantRow]:
        """
        Every row that gives a user standing on exactly this resource.

        For companies that is the membership and any company-scoped grant;
        other kinds have at most one ResourceGrant.
        """
        rows: List[GrantRow] = []
        if kind == ResourceKind.COMPANY:
            membership = self.membership(user_id, resource_id, for_update=for_update)
            if membership is not None:
                rows.append(membership)
        grant = self.grant_for(user_id, kind, resource_id, for_update=for_update)
        if grant is not None:
            rows.append(grant)
        return rows

    def delete_rows(self, rows: Iterable[GrantRow]) -> None:
        for row in rows:
            self.db.delete(row)
        self.db.flush()

    def members_of(self, kind: ResourceKind, resource_id: int) -> List[GrantRow]:
        """Rows scoped exactly to the resource (memberships first for companies)."""
        rows: List[GrantRow] = []
        if kind == ResourceKind.COMPANY:
            rows.extend(
                self.db.query(CompanyMembership)
                .filter(CompanyMembership.company_id == resource_id)
                .order_by(CompanyMembership.id)
                .all()
            )
        rows.extend(
            self.db.query(ResourceGrant)
            .filter_by(**scope_columns(kind, resource_id))
            .order_by(ResourceGrant.id)
            .all()
        )
        return rows
