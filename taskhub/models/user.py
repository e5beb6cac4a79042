"""
User Model

Users are global principals. Their standing inside companies, projects,
tasks and subtasks lives entirely in the grant tables
(CompanyMembership, ResourceGrant), never on the user row.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from taskhub.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Credentials and profile
    login = Column(String(100), unique=True, nullable=False, index=True)
    user_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)

    # Account status
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    memberships = relationship("CompanyMembership", back_populates="user", cascade="all, delete-orphan")
    grants = relationship("ResourceGrant", back_populates="user", cascade="all, delete-orphan")
    notes = relationship("Note", back_populates="author", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.login}>"
