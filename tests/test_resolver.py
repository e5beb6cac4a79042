"""Access resolution: grant paths, ceilings, best-of selection, notes."""
import pytest

from taskhub.core.resolver import (
    AccessResolver, EffectiveGrant, GrantSource, INHERITANCE_CEILINGS, best_of
)
from taskhub.core.roles import RoleLevel
from taskhub.models.enums import AccessTier, ResourceKind


@pytest.fixture
def tree(factory):
    owner = factory.user("owner")
    company = factory.company(owner)
    project = factory.project(company)
    task = factory.task(project)
    subtask = factory.subtask(task)
    return {"owner": owner, "company": company, "project": project, "task": task, "subtask": subtask}


@pytest.fixture
def resolver(db):
    return AccessResolver(db)


def test_owner_membership_reaches_every_level(resolver, tree):
    owner = tree["owner"]
    for kind in ("company", "project", "task", "subtask"):
        grant = resolver.resolve(owner.id, ResourceKind(kind), tree[kind].id)
        assert grant is not None
        assert grant.role_level == RoleLevel.OWNER
        assert grant.source == GrantSource.MEMBERSHIP
        assert grant.source_path[-1] == (ResourceKind.COMPANY, tree["company"].id)


def test_no_path_resolves_to_none(resolver, factory, tree):
    stranger = factory.user("stranger")
    assert resolver.resolve(stranger.id, ResourceKind.PROJECT, tree["project"].id) is None
    assert resolver.resolve(stranger.id, ResourceKind.COMPANY, tree["company"].id) is None


def test_nonexistent_resource_resolves_to_none(resolver, tree):
    assert resolver.resolve(tree["owner"].id, ResourceKind.PROJECT, 99999) is None
    assert resolver.resolve(tree["owner"].id, ResourceKind.NOTE, 99999) is None


def test_company_membership_ceilings(resolver, factory, tree):
    manager = factory.user("manager")
    factory.membership(manager, tree["company"], RoleLevel.MANAGER)

    assert resolver.resolve(manager.id, ResourceKind.COMPANY, tree["company"].id).role_level == 3
    assert resolver.resolve(manager.id, ResourceKind.PROJECT, tree["project"].id).role_level == 3
    # Company-wide level 3 does not reach tasks or subtasks
    assert resolver.resolve(manager.id, ResourceKind.TASK, tree["task"].id) is None
    assert resolver.resolve(manager.id, ResourceKind.SUBTASK, tree["subtask"].id) is None


def test_weak_membership_only_sees_the_company(resolver, factory, tree):
    guest = factory.user("guest")
    factory.membership(guest, tree["company"], RoleLevel.GUEST)

    assert resolver.resolve(guest.id, ResourceKind.COMPANY, tree["company"].id).role_level == 6
    assert resolver.resolve(guest.id, ResourceKind.PROJECT, tree["project"].id) is None


def test_project_grant_reaches_tasks_within_ceiling(resolver, factory, tree):
    user = factory.user()
    factory.grant(user, ResourceKind.PROJECT, tree["project"].id, RoleLevel.SUPPORT)

    grant = resolver.resolve(user.id, ResourceKind.TASK, tree["task"].id)
    assert grant.role_level == RoleLevel.SUPPORT
    assert grant.source == GrantSource.GRANT
    assert grant.source_path == (
        (ResourceKind.TASK, tree["task"].id),
        (ResourceKind.PROJECT, tree["project"].id),
    )
    # No standing upward
    assert resolver.resolve(user.id, ResourceKind.COMPANY, tree["company"].id) is None


def test_guest_project_grant_stops_at_project(resolver, factory, tree):
    user = factory.user()
    factory.grant(user, ResourceKind.PROJECT, tree["project"].id, RoleLevel.GUEST)

    assert resolver.resolve(user.id, ResourceKind.PROJECT, tree["project"].id).role_level == 6
    assert resolver.resolve(user.id, ResourceKind.TASK, tree["task"].id) is None


def test_task_grant_does_not_leak_to_sibling_task(resolver, factory, tree):
    user = factory.user()
    sibling = factory.task(tree["project"], title="Sibling")
    factory.grant(user, ResourceKind.TASK, tree["task"].id, RoleLevel.MANAGER)

    assert resolver.resolve(user.id, ResourceKind.TASK, tree["task"].id).role_level == 3
    assert resolver.resolve(user.id, ResourceKind.TASK, sibling.id) is None
    assert resolver.resolve(user.id, ResourceKind.PROJECT, tree["project"].id) is None


def test_best_of_prefers_lowest_level(resolver, factory, tree):
    user = factory.user()
    factory.membership(user, tree["company"], RoleLevel.MANAGER)
    factory.grant(user, ResourceKind.PROJECT, tree["project"].id, RoleLevel.OWNER)

    grant = resolver.resolve(user.id, ResourceKind.PROJECT, tree["project"].id)
    assert grant.role_level == 1
    assert grant.source == GrantSource.GRANT


def test_strong_task_grant_beats_weak_company_role(resolver, factory, tree):
    user = factory.user()
    factory.membership(user, tree["company"], RoleLevel.USER)
    factory.grant(user, ResourceKind.TASK, tree["task"].id, RoleLevel.OWNER)

    assert resolver.resolve(user.id, ResourceKind.TASK, tree["task"].id).role_level == 1


def test_company_scoped_grant_counts_as_company_standing(resolver, factory, tree):
    user = factory.user()
    factory.grant(user, ResourceKind.COMPANY, tree["company"].id, RoleLevel.ADMINISTRATOR)

    grant = resolver.resolve(user.id, ResourceKind.SUBTASK, tree["subtask"].id)
    assert grant.role_level == 2
    assert grant.source_path[-1] == (ResourceKind.COMPANY, tree["company"].id)


def test_roleless_grant_is_not_a_candidate(resolver, factory, tree):
    user = factory.user()
    factory.grant(user, ResourceKind.PROJECT, tree["project"].id, None)

    assert resolver.resolve(user.id, ResourceKind.PROJECT, tree["project"].id) is None


def test_equal_levels_break_ties_by_tier():
    limited = EffectiveGrant(3, AccessTier.LIMITED, source=GrantSource.MEMBERSHIP)
    full = EffectiveGrant(3, AccessTier.FULL, source=GrantSource.GRANT)
    assert best_of([limited, full]) is full
    assert best_of([]) is None


def test_ceilings_never_let_a_source_reach_upward():
    order = [ResourceKind.COMPANY, ResourceKind.PROJECT, ResourceKind.TASK, ResourceKind.SUBTASK]
    for target, sources in INHERITANCE_CEILINGS.items():
        for source in sources:
            assert order.index(source) <= order.index(target)


class TestNotes:

    def test_author_always_resolves_to_owner(self, resolver, factory, tree):
        author = factory.user("author")
        note = factory.note(author)

        grant = resolver.resolve(author.id, ResourceKind.NOTE, note.id)
        assert grant.role_level == 1
        assert grant.access_tier == AccessTier.FULL
        assert grant.source == GrantSource.AUTHOR

    def test_personal_note_admits_only_the_author(self, resolver, factory, tree):
        author = factory.user("author")
        note = factory.note(author)

        assert resolver.resolve(tree["owner"].id, ResourceKind.NOTE, note.id) is None

    def test_attached_note_inherits_the_attachment(self, resolver, factory, tree):
        author = factory.user("author")
        note = factory.note(author, attach_to=(ResourceKind.TASK, tree["task"].id))

        grant = resolver.resolve(tree["owner"].id, ResourceKind.NOTE, note.id)
        assert grant.role_level == 1
        assert grant.source == GrantSource.MEMBERSHIP
        assert grant.source_path[0] == (ResourceKind.NOTE, note.id)
        assert grant.source_path[1] == (ResourceKind.TASK, tree["task"].id)

    def test_attached_note_without_standing(self, resolver, factory, tree):
        author = factory.user("author")
        outsider = factory.user("outsider")
        note = factory.note(author, attach_to=(ResourceKind.PROJECT, tree["project"].id))

        assert resolver.resolve(outsider.id, ResourceKind.NOTE, note.id) is None
