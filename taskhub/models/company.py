"""
Company Models

The company is the top of the hierarchy and the tenant boundary.
CompanyMembership is the company-wide grant: one row per (user, company)
carrying a role and an access tier.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from taskhub.database import Base
from taskhub.models.enums import AccessTier


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    # Human-readable unique identifier derived from the name
    name_alias = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    contact_info = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    # Deleting a company removes its whole subtree
    memberships = relationship("CompanyMembership", back_populates="company", cascade="all, delete-orphan")
    projects = relationship("Project", back_populates="company", cascade="all, delete-orphan")
    notes = relationship("Note", back_populates="company", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Company {self.name_alias}>"


class CompanyMembership(Base):
    __tablename__ = "company_memberships"

    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    company_id = Column(
        Integer,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    role_id = Column(
        Integer,
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False
    )
    access_tier = Column(SQLEnum(AccessTier), nullable=False, default=AccessTier.LIMITED)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="memberships")
    company = relationship("Company", back_populates="memberships")
    role = relationship("Role", lazy="joined")

    __table_args__ = (
        # One company-wide grant per user per company
        Index('uq_membership_user_company', 'user_id', 'company_id', unique=True),
    )

    def __repr__(self):
        return f"<CompanyMembership user={self.user_id} company={self.company_id} role={self.role_id}>"

    @property
    def role_level(self) -> int:
        return self.role.level
