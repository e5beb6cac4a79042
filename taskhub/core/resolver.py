"""
Access Resolver

Given (user, resource kind, resource id) compute the user's best applicable
grant, or None.

Every way the user could have standing on the target is a candidate:

- company-wide: a CompanyMembership (or company-scoped ResourceGrant) on the
  resource's company, admitted only up to a ceiling that depends on the
  target kind
- resource-scoped: a ResourceGrant on the target itself or on one of its
  ancestors, again subject to a per-kind ceiling
- author: the requesting user wrote the note

The result is the minimum role level over all candidates (union, then
best-of; never first-match). Equal levels are broken by access tier.

SECURITY: A resource that does not exist resolves to None, the same as a
resource the user cannot reach. Callers must not be able to tell the two
apart.

NOTE: Nothing is cached. Each call reads the current grant tables.
"""
import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from taskhub.core.grants import GrantStore
from taskhub.core.hierarchy import HierarchyIndex
from taskhub.core.roles import RoleLevel
from taskhub.models.enums import AccessTier, ResourceKind
from taskhub.models.scope import Scope
from taskhub.utils.logging import get_logger

logger = get_logger(__name__)


class GrantSource(str, enum.Enum):
    MEMBERSHIP = "membership"
    GRANT = "grant"
    AUTHOR = "author"


@dataclass(frozen=True)
class EffectiveGrant:
    """
    The winning candidate for one resolution.

    source_path runs from the target resource to the scope that carried the
    grant, e.g. ((task, 7), (project, 3)) for a project grant reaching a task.
    """
    role_level: int
    access_tier: AccessTier
    source_path: Tuple[Scope, ...] = field(default_factory=tuple)
    source: GrantSource = GrantSource.GRANT

    @property
    def sort_key(self) -> Tuple[int, int]:
        return self.role_level, self.access_tier.rank


# INHERITANCE_CEILINGS[target][source] = weakest level that still reaches
# the target from a row scoped at source. Missing entry = never reaches.
INHERITANCE_CEILINGS: Dict[ResourceKind, Dict[ResourceKind, int]] = {
    ResourceKind.COMPANY: {
        ResourceKind.COMPANY: RoleLevel.GUEST,
    },
    ResourceKind.PROJECT: {
        ResourceKind.COMPANY: RoleLevel.MANAGER,
        ResourceKind.PROJECT: RoleLevel.GUEST,
    },
    ResourceKind.TASK: {
        ResourceKind.COMPANY: RoleLevel.ADMINISTRATOR,
        ResourceKind.PROJECT: RoleLevel.SUPPORT,
        ResourceKind.TASK: RoleLevel.GUEST,
    },
    ResourceKind.SUBTASK: {
        ResourceKind.COMPANY: RoleLevel.ADMINISTRATOR,
        ResourceKind.PROJECT: RoleLevel.SUPPORT,
        ResourceKind.TASK: RoleLevel.SUPPORT,
        ResourceKind.SUBTASK: RoleLevel.GUEST,
    },
}


def ceiling_for(target: ResourceKind, source: ResourceKind) -> Optional[int]:
    return INHERITANCE_CEILINGS.get(target, {}).get(source)


def best_of(candidates: List[EffectiveGrant]) -> Optional[EffectiveGrant]:
    """Most privileged candidate; ties go to the stronger access tier."""
    if not candidates:
        return None
    return min(candidates, key=lambda candidate: candidate.sort_key)


class AccessResolver:
    """Computes effective grants from the grant tables and the hierarchy."""

    def __init__(self, db: Session):
        self.db = db
        self.hierarchy = HierarchyIndex(db)
        self.store = GrantStore(db)

    def resolve(self, user_id: int, kind: ResourceKind, resource_id: int) -> Optional[EffectiveGrant]:
        if kind == ResourceKind.NOTE:
            result = self._resolve_note(user_id, resource_id)
        else:
            chain = self.hierarchy.ancestors(kind, resource_id)
            result = best_of(self._candidates(user_id, chain))

        if result is None:
            logger.debug(
                f"No grant path for user {user_id} on {kind.value} {resource_id}",
                extra={"user_id": user_id, "resource_kind": kind.value, "resource_id": resource_id}
            )
        else:
            logger.debug(
                f"User {user_id} resolved to level {result.role_level} on {kind.value} {resource_id} "
                f"via {result.source.value}",
                extra={"user_id": user_id, "resource_kind": kind.value, "resource_id": resource_id}
            )
        return result

    def _candidates(self, user_id: int, chain: List[Scope]) -> List[EffectiveGrant]:
        """Every admitted candidate for the first scope in chain."""
        if not chain:
            return []

        target_kind = chain[0][0]
        candidates: List[EffectiveGrant] = []

        # Company-wide standing from memberships
        company_id = chain[-1][1]
        membership = self.store.membership(user_id, company_id)
        if membership is not None:
            self._admit(
                candidates, target_kind, ResourceKind.COMPANY, membership.role_level,
                membership.access_tier, chain, GrantSource.MEMBERSHIP
            )

        # Resource-scoped grants on the target and every ancestor
        for grant in self.store.grants_on(user_id, chain):
            if grant.role_level is None:
                continue
            source_kind = grant.scope[0]
            self._admit(
                candidates, target_kind, source_kind, grant.role_level,
                grant.access_tier, chain, GrantSource.GRANT
            )

        return candidates

    @staticmethod
    def _admit(candidates, target_kind, source_kind, level, tier, chain, source):
        ceiling = ceiling_for(target_kind, source_kind)
        if ceiling is None or level > ceiling:
            return
        depth = next(i for i, (kind, _) in enumerate(chain) if kind == source_kind)
        candidates.append(EffectiveGrant(
            role_level=level,
            access_tier=tier,
            source_path=tuple(chain[:depth + 1]),
            source=source
        ))

    def _resolve_note(self, user_id: int, note_id: int) -> Optional[EffectiveGrant]:
        note = self.hierarchy.note(note_id)
        if note is None:
            return None

        note_scope = (ResourceKind.NOTE, note_id)
        candidates: List[EffectiveGrant] = []

        if note.user_id == user_id:
            candidates.append(EffectiveGrant(
                role_level=int(RoleLevel.OWNER),
                access_tier=AccessTier.FULL,
                source_path=(note_scope,),
                source=GrantSource.AUTHOR
            ))

        # Personal notes admit only the author
        attachment = note.attachment
        if attachment is not None:
            inherited = best_of(self._candidates(user_id, self.hierarchy.ancestors(*attachment)))
            if inherited is not None:
                candidates.append(EffectiveGrant(
                    role_level=inherited.role_level,
                    access_tier=inherited.access_tier,
                    source_path=(note_scope,) + inherited.source_path,
                    source=inherited.source
                ))

        return best_of(candidates)
