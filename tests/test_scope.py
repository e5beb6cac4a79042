"""Scope exclusivity for grants and notes."""
import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from taskhub.core.exceptions import InvalidResourceScope
from taskhub.core.roles import RoleLevel, role_for_level
from taskhub.models import Note, ResourceGrant
from taskhub.models.enums import AccessTier, ResourceKind
from taskhub.models.scope import exclusive_scope_check, scope_columns, single_scope


def test_single_scope_picks_the_set_column():
    assert single_scope(project_id=4) == (ResourceKind.PROJECT, 4)
    assert single_scope(allow_empty=True) is None


def test_single_scope_rejects_two_columns():
    with pytest.raises(InvalidResourceScope) as exc_info:
        single_scope(project_id=1, task_id=2)
    assert exc_info.value.reason == "scope_not_exclusive"
    assert exc_info.value.detail == "bad_format"


def test_single_scope_rejects_empty_grant_scope():
    with pytest.raises(InvalidResourceScope) as exc_info:
        single_scope()
    assert exc_info.value.reason == "scope_missing"


def test_notes_are_not_scopable():
    with pytest.raises(InvalidResourceScope):
        scope_columns(ResourceKind.NOTE, 1)


def test_check_expression_allows_empty_only_for_notes():
    assert exclusive_scope_check(allow_empty=True).count(" OR ") == 4
    assert exclusive_scope_check(allow_empty=False).count(" OR ") == 3


@pytest.fixture
def tree(factory):
    owner = factory.user()
    company = factory.company(owner)
    project = factory.project(company)
    task = factory.task(project)
    return {"owner": owner, "company": company, "project": project, "task": task}


def test_grant_with_two_scopes_rejected_before_persistence(db, tree):
    grant = ResourceGrant(
        user_id=tree["owner"].id,
        project_id=tree["project"].id,
        task_id=tree["task"].id,
        role=role_for_level(db, RoleLevel.MANAGER),
        access_tier=AccessTier.LIMITED
    )
    db.add(grant)
    with pytest.raises(InvalidResourceScope):
        db.flush()
    db.rollback()

    assert db.query(ResourceGrant).count() == 0


def test_grant_without_scope_rejected(db, tree):
    db.add(ResourceGrant(user_id=tree["owner"].id, access_tier=AccessTier.LIMITED))
    with pytest.raises(InvalidResourceScope):
        db.flush()
    db.rollback()


def test_note_with_two_attachments_rejected(db, tree):
    db.add(Note(
        user_id=tree["owner"].id,
        content="both",
        company_id=tree["company"].id,
        project_id=tree["project"].id
    ))
    with pytest.raises(InvalidResourceScope):
        db.flush()
    db.rollback()


def test_personal_note_is_allowed(db, tree):
    note = Note(user_id=tree["owner"].id, content="mine")
    db.add(note)
    db.flush()
    assert note.attachment is None


def test_database_check_constraint_backs_up_the_model(db, tree):
    """Raw SQL skips the mapper events; the CHECK constraint still refuses."""
    db.commit()
    with pytest.raises(IntegrityError):
        db.execute(
            text(
                "INSERT INTO resource_grants (user_id, project_id, task_id, access_tier, created_at) "
                "VALUES (:user_id, :project_id, :task_id, 'LIMITED', CURRENT_TIMESTAMP)"
            ),
            {"user_id": tree["owner"].id, "project_id": tree["project"].id, "task_id": tree["task"].id}
        )
    db.rollback()
