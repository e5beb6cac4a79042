"""
Role Catalog

Numeric role levels, lower = more privileged. The numbers are part of the
contract with every other service that reads the grant tables and must not
be renumbered:

    1 Owner          full authority (the only level allowed to delete)
    2 Administrator
    3 Manager        default level for explicitly added members
    4 User
    5 Support
    6 Guest

Comparisons are always "lower-or-equal is more-or-equally privileged".
"""
import enum
from typing import Dict

from sqlalchemy.orm import Session

from taskhub.models.role import Role
from taskhub.utils.logging import get_logger

logger = get_logger(__name__)


class RoleLevel(enum.IntEnum):
    OWNER = 1
    ADMINISTRATOR = 2
    MANAGER = 3
    USER = 4
    SUPPORT = 5
    GUEST = 6

    @classmethod
    def weakest(cls) -> "RoleLevel":
        return max(cls)


# (name, description, level) seeded in this order, so ids match levels on a
# fresh database. Lookups always go through the level column, never the id.
DEFAULT_ROLES = [
    ("Owner", "Company owner", RoleLevel.OWNER),
    ("Administrator", "Administrator with full access", RoleLevel.ADMINISTRATOR),
    ("Manager", "Manager with limited administrative rights", RoleLevel.MANAGER),
    ("User", "Regular user", RoleLevel.USER),
    ("Support", "Support staff", RoleLevel.SUPPORT),
    ("Guest", "Guest with limited access", RoleLevel.GUEST),
]


def seed_roles(db: Session) -> Dict[int, Role]:
    """
    Insert the default roles that are missing. Safe to call repeatedly.

    Returns a mapping of level -> Role. Flushes but does not commit.
    """
    existing = {role.name: role for role in db.query(Role).all()}
    created = 0

    for name, description, level in DEFAULT_ROLES:
        if name in existing:
            continue
        role = Role(name=name, description=description, level=int(level))
        db.add(role)
        existing[name] = role
        created += 1

    db.flush()
    if created:
        logger.info(f"Seeded {created} roles")

    return {role.level: role for role in existing.values()}


def role_for_level(db: Session, level: int) -> Role:
    """
    Return the catalog role for a level.

    A missing role means the catalog was never seeded, which is an
    infrastructure problem rather than an authorization outcome.
    """
    role = db.query(Role).filter(Role.level == int(level)).order_by(Role.id).first()
    if role is None:
        raise RuntimeError(f"Role catalog has no role with level {int(level)}; run seed_roles()")
    return role
