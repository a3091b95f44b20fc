import pytest
from django.contrib.auth.models import User

from task.models import Task
from taskhub.policy import (
    Action,
    Requester,
    action_for_method,
    can_access,
    ensure_access,
    ensure_can_reassign,
    resolve_create_assignee,
)
from user.models import Role
from utils.exceptions import AccessDenied

ADMIN = Requester(user_id=1, role=Role.ADMIN)
ALICE = Requester(user_id=2, role=Role.USER)


def _task(assignee_id):
    return Task(assigned_to_id=assignee_id, created_by_id=1)


@pytest.mark.parametrize('action', list(Action))
def test_admin_has_full_access_to_any_task(action):
    assert can_access(ADMIN, action, _task(2))
    assert can_access(ADMIN, action, _task(3))


@pytest.mark.parametrize('action', list(Action))
def test_user_only_reaches_tasks_assigned_to_them(action):
    assert can_access(ALICE, action, _task(2))
    assert not can_access(ALICE, action, _task(3))


def test_creator_who_is_not_assignee_has_no_access():
    task = Task(assigned_to_id=3, created_by_id=2)
    assert not can_access(ALICE, Action.READ, task)


def test_user_record_rules():
    alice = User(pk=2)
    bob = User(pk=3)
    admin = User(pk=1)

    assert can_access(ALICE, Action.READ, alice)
    assert can_access(ALICE, Action.WRITE, alice)
    assert not can_access(ALICE, Action.DELETE, alice)
    assert not can_access(ALICE, Action.READ, bob)

    assert can_access(ADMIN, Action.DELETE, bob)
    assert can_access(ADMIN, Action.WRITE, admin)
    assert not can_access(ADMIN, Action.DELETE, admin)


def test_unknown_resource_is_denied():
    assert not can_access(ADMIN, Action.READ, object())


def test_ensure_access_raises():
    with pytest.raises(AccessDenied):
        ensure_access(ALICE, Action.READ, _task(3))


def test_string_ids_from_tokens_compare_equal():
    requester = Requester(user_id='2', role=Role.USER)
    assert can_access(requester, Action.READ, _task(2))


class TestCreateAssignee:

    def test_user_defaults_to_self(self):
        assert resolve_create_assignee(ALICE, None) == 2
        assert resolve_create_assignee(ALICE, '') == 2

    def test_user_may_name_themselves(self):
        assert resolve_create_assignee(ALICE, '2') == 2

    def test_user_cannot_assign_others(self):
        with pytest.raises(AccessDenied) as excinfo:
            resolve_create_assignee(ALICE, 3)
        assert str(excinfo.value.detail) == 'You can only assign tasks to yourself'

    def test_admin_gets_what_they_asked_for(self):
        assert resolve_create_assignee(ADMIN, 3) == 3
        assert resolve_create_assignee(ADMIN, None) is None


class TestReassign:

    def test_no_value_is_not_a_change(self):
        assert ensure_can_reassign(ALICE, _task(2), None) is False

    def test_same_assignee_is_not_a_change(self):
        assert ensure_can_reassign(ALICE, _task(2), '2') is False

    def test_user_cannot_reassign(self):
        with pytest.raises(AccessDenied) as excinfo:
            ensure_can_reassign(ALICE, _task(2), 3)
        assert str(excinfo.value.detail) == 'Only admin can reassign tasks'

    def test_admin_can_reassign(self):
        assert ensure_can_reassign(ADMIN, _task(2), 3) is True


@pytest.mark.parametrize('method,expected', [
    ('GET', Action.READ),
    ('HEAD', Action.READ),
    ('PUT', Action.WRITE),
    ('PATCH', Action.WRITE),
    ('POST', Action.WRITE),
    ('DELETE', Action.DELETE),
])
def test_action_for_method(method, expected):
    assert action_for_method(method) == expected
