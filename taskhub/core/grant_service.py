"""
Grant Mutation Service

Adds and removes grants, cleans up after resource deletion, and issues the
automatic Owner grant to whoever creates a resource.

Rules:
- add_grant: actor must pass MANAGE_MEMBERS on the resource. Adding a user
  who already has a row on that exact resource returns the existing row.
- remove_grant: a user may always remove their own rows. Removing someone
  else needs MANAGE_MEMBERS and a level at least as strong as the target's
  (peers and below only).
- cascade_delete_grants: not gated; the caller has already authorized the
  resource delete and commits both together.

NOTE: Nothing here commits. Handlers commit once per request so a resource
delete and its grant cleanup share one transaction.
"""
from typing import Optional

from sqlalchemy.orm import Session

from taskhub.core.exceptions import InvalidResourceScope, NotAssociated, PermissionDenied
from taskhub.core.grants import GrantRow, GrantStore
from taskhub.core.hierarchy import HierarchyIndex
from taskhub.core.permissions import AuthorizationGate, Operation
from taskhub.core.resolver import AccessResolver
from taskhub.core.roles import RoleLevel, role_for_level
from taskhub.models import User
from taskhub.models.enums import AccessTier, ResourceKind
from taskhub.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

DEFAULT_GRANT_LEVEL = RoleLevel.MANAGER
DEFAULT_GRANT_TIER = AccessTier.LIMITED


class GrantMutationService:
    """Writes to the grant tables on behalf of operation handlers."""

    def __init__(self, db: Session, gate: Optional[AuthorizationGate] = None):
        self.db = db
        self.gate = gate or AuthorizationGate(AccessResolver(db))
        self.store = GrantStore(db)
        self.hierarchy = HierarchyIndex(db)

    def add_grant(self, actor_id: int, target_id: int, kind: ResourceKind, resource_id: int) -> GrantRow:
        """
        Give target_id the default grant on a resource.

        Companies get a CompanyMembership; every other kind a ResourceGrant.
        Idempotent: an existing row on the same resource is returned as is.
        An unknown target is refused with the same PermissionDenied as any
        other failed mutation.
        """
        self._require_grantable(kind)
        self.gate.authorize(actor_id, kind, resource_id, Operation.MANAGE_MEMBERS)

        if self.db.get(User, target_id) is None:
            self._deny(actor_id, target_id, kind, resource_id, "unknown_target")

        role = role_for_level(self.db, DEFAULT_GRANT_LEVEL)
        if kind == ResourceKind.COMPANY:
            row = self.store.ensure_membership(target_id, resource_id, role, DEFAULT_GRANT_TIER)
        else:
            row = self.store.ensure_grant(target_id, kind, resource_id, role, DEFAULT_GRANT_TIER)

        self._audit("grant_added", actor_id, target_id, kind, resource_id, row.role_level)
        return row

    def remove_grant(self, actor_id: int, target_id: int, kind: ResourceKind, resource_id: int) -> None:
        """
        Remove target_id's standing on exactly this resource.

        On a company both the membership and any company-scoped grant go.
        Raises NotAssociated if there is no row, PermissionDenied if the
        actor may not remove it.
        """
        self._require_grantable(kind)

        if actor_id == target_id:
            rows = self.store.rows_for(actor_id, kind, resource_id, for_update=True)
            if not rows:
                self._deny(actor_id, target_id, kind, resource_id, "not_associated", NotAssociated())
            level = self._strongest(rows)
            self.store.delete_rows(rows)
            self._audit("grant_removed", actor_id, target_id, kind, resource_id, level)
            return

        actor_grant = self.gate.authorize(actor_id, kind, resource_id, Operation.MANAGE_MEMBERS)

        rows = self.store.rows_for(target_id, kind, resource_id, for_update=True)
        if not rows:
            self._deny(actor_id, target_id, kind, resource_id, "not_associated", NotAssociated())

        target_level = self._strongest(rows)
        if actor_grant.role_level > target_level:
            self._deny(actor_id, target_id, kind, resource_id, "target_more_senior")

        self.store.delete_rows(rows)
        self._audit("grant_removed", actor_id, target_id, kind, resource_id, target_level)

    def cascade_delete_grants(self, kind: ResourceKind, resource_id: int) -> int:
        """
        Delete every grant on the resource and everything under it.

        For a company this includes all memberships. Returns the number of
        rows removed.
        """
        if kind == ResourceKind.NOTE:
            return 0

        subtree = self.hierarchy.descendants(kind, resource_id)
        removed = self.store.delete_grants_for_scopes(subtree)
        if kind == ResourceKind.COMPANY:
            removed += self.store.delete_memberships(resource_id)
        self.db.flush()

        logger.info(f"Removed {removed} grants under {kind.value} {resource_id}")
        return removed

    def grant_creator(self, user_id: int, kind: ResourceKind, resource_id: int) -> GrantRow:
        """Owner-level, full-tier grant for the user who just created the resource."""
        self._require_grantable(kind)
        role = role_for_level(self.db, RoleLevel.OWNER)
        if kind == ResourceKind.COMPANY:
            return self.store.ensure_membership(user_id, resource_id, role, AccessTier.FULL)
        return self.store.ensure_grant(user_id, kind, resource_id, role, AccessTier.FULL)

    @staticmethod
    def _strongest(rows) -> int:
        # A role-less row ranks below every real role
        return min(
            row.role_level if row.role_level is not None else int(RoleLevel.weakest())
            for row in rows
        )

    @staticmethod
    def _require_grantable(kind: ResourceKind) -> None:
        if kind == ResourceKind.NOTE:
            raise InvalidResourceScope("kind_not_scopable")

    @staticmethod
    def _audit(event_type, actor_id, target_id, kind, resource_id, level):
        log_security_event(
            event_type,
            {
                "user_id": actor_id,
                "target_user_id": target_id,
                "resource_kind": kind.value,
                "resource_id": resource_id,
                "role_level": level,
            },
            logger
        )

    @staticmethod
    def _deny(actor_id, target_id, kind, resource_id, reason, error=None):
        log_security_event(
            "permission_denied",
            {
                "user_id": actor_id,
                "target_user_id": target_id,
                "resource_kind": kind.value,
                "resource_id": resource_id,
                "reason": reason,
            },
            logger
        )
        raise error or PermissionDenied(reason)
