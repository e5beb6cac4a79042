"""
Shared fixtures.

Tests run against in-memory SQLite. The environment is set before any
taskhub import so Settings (cached) and the engine pick it up.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient

from taskhub.database import Base, SessionLocal, engine, get_db
from taskhub.main import app
from taskhub.models import (
    Company, CompanyMembership, Project, Task, Subtask, ResourceGrant, Note, User
)
from taskhub.models.enums import AccessTier
from taskhub.models.scope import scope_columns
from taskhub.core.roles import RoleLevel, role_for_level, seed_roles
from taskhub.core.security import create_access_token


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    seed_roles(session)
    session.commit()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class Factory:
    """Builds users, resources and grants directly in the database."""

    def __init__(self, db):
        self.db = db
        self._counter = 0

    def user(self, login=None):
        self._counter += 1
        login = login or f"user{self._counter}"
        user = User(
            login=login,
            user_name=login.title(),
            email=f"{login}@example.com",
            hashed_password="x"
        )
        self.db.add(user)
        self.db.flush()
        return user

    def company(self, owner=None, name=None):
        self._counter += 1
        company = Company(name=name or f"Company {self._counter}", name_alias=f"company{self._counter}")
        self.db.add(company)
        self.db.flush()
        if owner is not None:
            self.membership(owner, company, RoleLevel.OWNER, AccessTier.FULL)
        return company

    def project(self, company, title="Project"):
        project = Project(company_id=company.id, title=title)
        self.db.add(project)
        self.db.flush()
        return project

    def task(self, project, title="Task"):
        task = Task(project_id=project.id, title=title)
        self.db.add(task)
        self.db.flush()
        return task

    def subtask(self, task, title="Subtask"):
        subtask = Subtask(task_id=task.id, title=title)
        self.db.add(subtask)
        self.db.flush()
        return subtask

    def note(self, author, attach_to=None, content="note"):
        columns = {}
        if attach_to is not None:
            kind, resource_id = attach_to
            columns = scope_columns(kind, resource_id)
        note = Note(user_id=author.id, content=content, **columns)
        self.db.add(note)
        self.db.flush()
        return note

    def membership(self, user, company, level, tier=AccessTier.LIMITED):
        row = CompanyMembership(
            user_id=user.id,
            company_id=company.id,
            role=role_for_level(self.db, level),
            access_tier=tier
        )
        self.db.add(row)
        self.db.flush()
        return row

    def grant(self, user, kind, resource_id, level, tier=AccessTier.LIMITED):
        row = ResourceGrant(
            user_id=user.id,
            role=role_for_level(self.db, level) if level is not None else None,
            access_tier=tier,
            **scope_columns(kind, resource_id)
        )
        self.db.add(row)
        self.db.flush()
        return row


@pytest.fixture
def factory(db):
    return Factory(db)


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def headers():
    return auth_headers
