"""Authorization gate thresholds."""
import pytest

from taskhub.core.exceptions import PermissionDenied
from taskhub.core.permissions import (
    AuthorizationGate, Operation, OPERATION_THRESHOLDS, Threshold, threshold_for
)
from taskhub.core.resolver import AccessResolver
from taskhub.core.roles import RoleLevel
from taskhub.models.enums import ResourceKind


@pytest.fixture
def gate(db):
    return AuthorizationGate(AccessResolver(db))


class TestThreshold:

    def test_at_most(self):
        threshold = Threshold.at_most(2)
        assert threshold.allows(1)
        assert threshold.allows(2)
        assert not threshold.allows(3)

    def test_owner_is_exact(self):
        threshold = Threshold.owner()
        assert threshold.allows(1)
        assert not threshold.allows(2)

    def test_any_grant(self):
        assert Threshold.any_grant().allows(6)


def test_delete_is_owner_only_everywhere_but_notes():
    for kind in (ResourceKind.COMPANY, ResourceKind.PROJECT, ResourceKind.TASK, ResourceKind.SUBTASK):
        assert threshold_for(kind, Operation.DELETE) == Threshold.owner()


def test_unsupported_operation_is_a_programming_error():
    with pytest.raises(ValueError):
        threshold_for(ResourceKind.SUBTASK, Operation.CREATE_CHILD)
    with pytest.raises(ValueError):
        threshold_for(ResourceKind.NOTE, Operation.MANAGE_MEMBERS)


def test_every_kind_has_a_view_threshold():
    for kind in ResourceKind:
        assert Operation.VIEW in OPERATION_THRESHOLDS[kind]


def test_gate_returns_the_resolved_grant(gate, factory):
    owner = factory.user()
    company = factory.company(owner)

    grant = gate.authorize(owner.id, ResourceKind.COMPANY, company.id, Operation.DELETE)
    assert grant.role_level == RoleLevel.OWNER


def test_level_three_cannot_delete_project(gate, factory):
    owner = factory.user()
    manager = factory.user()
    company = factory.company(owner)
    project = factory.project(company)
    factory.grant(manager, ResourceKind.PROJECT, project.id, RoleLevel.MANAGER)

    assert gate.is_allowed(manager.id, ResourceKind.PROJECT, project.id, Operation.VIEW)
    assert gate.is_allowed(manager.id, ResourceKind.PROJECT, project.id, Operation.CREATE_CHILD)
    assert not gate.is_allowed(manager.id, ResourceKind.PROJECT, project.id, Operation.UPDATE)

    with pytest.raises(PermissionDenied) as exc_info:
        gate.authorize(manager.id, ResourceKind.PROJECT, project.id, Operation.DELETE)
    assert exc_info.value.reason == "insufficient_level"
    assert exc_info.value.detail == "permission_denied"


def test_missing_resource_and_no_path_look_the_same(gate, factory):
    owner = factory.user()
    stranger = factory.user()
    company = factory.company(owner)

    with pytest.raises(PermissionDenied) as missing:
        gate.authorize(owner.id, ResourceKind.COMPANY, company.id + 100, Operation.VIEW)
    with pytest.raises(PermissionDenied) as no_path:
        gate.authorize(stranger.id, ResourceKind.COMPANY, company.id, Operation.VIEW)

    assert missing.value.status_code == no_path.value.status_code == 403
    assert missing.value.detail == no_path.value.detail
    assert missing.value.reason == no_path.value.reason == "no_grant_path"


def test_task_update_threshold(gate, factory):
    owner = factory.user()
    company = factory.company(owner)
    task = factory.task(factory.project(company))
    manager = factory.user()
    user = factory.user()
    factory.grant(manager, ResourceKind.TASK, task.id, RoleLevel.MANAGER)
    factory.grant(user, ResourceKind.TASK, task.id, RoleLevel.USER)

    assert gate.is_allowed(manager.id, ResourceKind.TASK, task.id, Operation.UPDATE)
    assert not gate.is_allowed(user.id, ResourceKind.TASK, task.id, Operation.UPDATE)
    assert gate.is_allowed(user.id, ResourceKind.TASK, task.id, Operation.VIEW)


def test_note_operations_need_level_two(gate, factory):
    owner = factory.user()
    author = factory.user()
    manager = factory.user()
    company = factory.company(owner)
    project = factory.project(company)
    factory.grant(manager, ResourceKind.PROJECT, project.id, RoleLevel.MANAGER)
    note = factory.note(author, attach_to=(ResourceKind.PROJECT, project.id))

    assert gate.is_allowed(author.id, ResourceKind.NOTE, note.id, Operation.DELETE)
    assert gate.is_allowed(owner.id, ResourceKind.NOTE, note.id, Operation.VIEW)
    assert not gate.is_allowed(manager.id, ResourceKind.NOTE, note.id, Operation.VIEW)
