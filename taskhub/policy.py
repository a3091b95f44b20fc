"""
Access-control policy for tasks and user records.

Rules, in precedence order:

1. admins may do anything to any task or user, except delete their own user
2. a non-admin may act on a task only when it is assigned to them
3. a non-admin creating a task can only assign it to themselves
4. reassigning an existing task to somebody else is admin only
5. a non-admin never reads or changes another user's record

Every view goes through these functions instead of re-implementing the checks.
"""
import enum
from dataclasses import dataclass

from django.contrib.auth.models import User

from task.models import Task
from user.models import Role
from utils.exceptions import AccessDenied


class Action(str, enum.Enum):
    READ = 'read'
    WRITE = 'write'
    DELETE = 'delete'


@dataclass(frozen=True)
class Requester:
    """Authenticated caller, produced once by the token verifier."""
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def _same_id(left, right) -> bool:
    if left is None or right is None:
        return False
    return str(left) == str(right)


def can_access(requester: Requester, action: Action, resource) -> bool:
    """Decide whether ``requester`` may perform ``action`` on a Task or User."""
    action = Action(action)

    if isinstance(resource, User):
        is_self = _same_id(resource.pk, requester.user_id)
        if requester.is_admin:
            return not (action == Action.DELETE and is_self)
        # own profile only, and never deletion
        return is_self and action != Action.DELETE

    if isinstance(resource, Task):
        if requester.is_admin:
            return True
        return _same_id(resource.assigned_to_id, requester.user_id)

    return False


def ensure_access(requester: Requester, action: Action, resource) -> None:
    if not can_access(requester, action, resource):
        raise AccessDenied()


def resolve_create_assignee(requester: Requester, requested_id):
    """
    Pick the assignee for a new task.

    Non-admins get themselves when nothing is supplied and are refused when
    they name somebody else. Admins get exactly what they asked for.
    """
    if requester.is_admin:
        return requested_id

    if requested_id in (None, ''):
        return requester.user_id

    if not _same_id(requested_id, requester.user_id):
        raise AccessDenied('You can only assign tasks to yourself')

    return requester.user_id


def ensure_can_reassign(requester: Requester, task: Task, new_assignee_id) -> bool:
    """
    Check a change of ``task.assigned_to``.

    Returns True when the assignee actually changes. A non-admin sending the
    current assignment back is not a reassignment.
    """
    if new_assignee_id in (None, ''):
        return False

    if _same_id(new_assignee_id, task.assigned_to_id):
        return False

    if not requester.is_admin:
        raise AccessDenied('Only admin can reassign tasks')

    return True


def action_for_method(method: str) -> Action:
    if method == 'DELETE':
        return Action.DELETE
    if method in ('GET', 'HEAD', 'OPTIONS'):
        return Action.READ
    return Action.WRITE
