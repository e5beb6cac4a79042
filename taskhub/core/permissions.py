"""
Authorization Gate

Every operation handler asks one question: may this user perform this
operation on this resource? The gate resolves the user's effective grant
once, compares its level against the operation's threshold, and either
returns the grant or raises PermissionDenied.

Thresholds live in OPERATION_THRESHOLDS so each (kind, operation) pair is
auditable in one place instead of scattered through handlers.

SECURITY: The exception body is identical for "no such resource", "no
grant path" and "level too low". Only the security log records which.
"""
import enum
from dataclasses import dataclass
from typing import Dict, Optional

from taskhub.core.exceptions import PermissionDenied
from taskhub.core.resolver import AccessResolver, EffectiveGrant
from taskhub.core.roles import RoleLevel
from taskhub.models.enums import ResourceKind
from taskhub.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


class Operation(str, enum.Enum):
    VIEW = "view"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE_MEMBERS = "manage_members"
    CREATE_CHILD = "create_child"
    CREATE_NOTE = "create_note"


@dataclass(frozen=True)
class Threshold:
    """
    Requirement on a resolved role level.

    max_level=None accepts any resolved grant. exact=True requires the level
    to equal max_level (Owner-only operations).
    """
    max_level: Optional[int] = None
    exact: bool = False

    @classmethod
    def at_most(cls, level: int) -> "Threshold":
        return cls(max_level=int(level))

    @classmethod
    def owner(cls) -> "Threshold":
        return cls(max_level=int(RoleLevel.OWNER), exact=True)

    @classmethod
    def any_grant(cls) -> "Threshold":
        return cls()

    def allows(self, level: int) -> bool:
        if self.max_level is None:
            return True
        if self.exact:
            return level == self.max_level
        return level <= self.max_level


ANY = Threshold.any_grant()
OWNER_ONLY = Threshold.owner()
ADMIN = Threshold.at_most(RoleLevel.ADMINISTRATOR)
MANAGER = Threshold.at_most(RoleLevel.MANAGER)

OPERATION_THRESHOLDS: Dict[ResourceKind, Dict[Operation, Threshold]] = {
    ResourceKind.COMPANY: {
        Operation.VIEW: ANY,
        Operation.UPDATE: ADMIN,
        Operation.DELETE: OWNER_ONLY,
        Operation.MANAGE_MEMBERS: ADMIN,
        Operation.CREATE_CHILD: ADMIN,
        Operation.CREATE_NOTE: ADMIN,
    },
    ResourceKind.PROJECT: {
        Operation.VIEW: ANY,
        Operation.UPDATE: ADMIN,
        Operation.DELETE: OWNER_ONLY,
        Operation.MANAGE_MEMBERS: ADMIN,
        Operation.CREATE_CHILD: MANAGER,
        Operation.CREATE_NOTE: ADMIN,
    },
    ResourceKind.TASK: {
        Operation.VIEW: ANY,
        Operation.UPDATE: MANAGER,
        Operation.DELETE: OWNER_ONLY,
        Operation.MANAGE_MEMBERS: ADMIN,
        Operation.CREATE_CHILD: MANAGER,
        Operation.CREATE_NOTE: ADMIN,
    },
    ResourceKind.SUBTASK: {
        Operation.VIEW: ANY,
        Operation.UPDATE: MANAGER,
        Operation.DELETE: OWNER_ONLY,
        Operation.MANAGE_MEMBERS: ADMIN,
        Operation.CREATE_NOTE: ADMIN,
    },
    ResourceKind.NOTE: {
        Operation.VIEW: ADMIN,
        Operation.UPDATE: ADMIN,
        Operation.DELETE: ADMIN,
    },
}


def threshold_for(kind: ResourceKind, operation: Operation) -> Threshold:
    """Raises ValueError for an operation the kind does not support."""
    try:
        return OPERATION_THRESHOLDS[kind][operation]
    except KeyError:
        raise ValueError(f"{operation.value} is not supported on {kind.value}") from None


class AuthorizationGate:
    """Resolve once, compare, allow or deny."""

    def __init__(self, resolver: AccessResolver):
        self.resolver = resolver

    def authorize(
        self,
        user_id: int,
        kind: ResourceKind,
        resource_id: int,
        operation: Operation
    ) -> EffectiveGrant:
        """
        Return the caller's effective grant if it satisfies the operation's
        threshold. Raises PermissionDenied otherwise.
        """
        threshold = threshold_for(kind, operation)
        grant = self.resolver.resolve(user_id, kind, resource_id)

        if grant is None:
            self._deny(user_id, kind, resource_id, operation, "no_grant_path")
        if not threshold.allows(grant.role_level):
            self._deny(user_id, kind, resource_id, operation, "insufficient_level", grant.role_level)

        return grant

    def is_allowed(self, user_id: int, kind: ResourceKind, resource_id: int, operation: Operation) -> bool:
        """Same decision as authorize() without raising or logging. Used for list filtering."""
        threshold = threshold_for(kind, operation)
        grant = self.resolver.resolve(user_id, kind, resource_id)
        return grant is not None and threshold.allows(grant.role_level)

    def _deny(self, user_id, kind, resource_id, operation, reason, level=None):
        log_security_event(
            "permission_denied",
            {
                "user_id": user_id,
                "resource_kind": kind.value,
                "resource_id": resource_id,
                "operation": operation.value,
                "reason": reason,
                "role_level": level,
            },
            logger
        )
        raise PermissionDenied(reason)
