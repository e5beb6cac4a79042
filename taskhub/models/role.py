"""
Role Model

Static reference data: named roles with a numeric level.
Lower level = more privileged (1 = Owner). Seeded once by
taskhub.core.roles.seed_roles().

NOTE: parent_role_id is informational. Decisions compare levels only.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from taskhub.database import Base


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(String(255), nullable=True)
    parent_role_id = Column(
        Integer,
        ForeignKey("roles.id", ondelete="SET NULL"),
        nullable=True
    )
    level = Column(Integer, nullable=False, index=True)

    parent = relationship("Role", remote_side=[id])

    __table_args__ = (
        CheckConstraint("level > 0", name="ck_roles_level_positive"),
    )

    def __repr__(self):
        return f"<Role {self.name} level={self.level}>"
