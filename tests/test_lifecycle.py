from datetime import datetime, timezone as dt_timezone

import pytest

from task.lifecycle import ALLOWED_TRANSITIONS, InvalidTransition, can_transition, check_transition, compute_completed_at
from task.models import Status

NOW = datetime(2030, 1, 1, 12, 0, tzinfo=dt_timezone.utc)
EARLIER = datetime(2029, 12, 31, 9, 30, tzinfo=dt_timezone.utc)


def test_every_status_has_a_rule():
    assert set(ALLOWED_TRANSITIONS) == set(Status)


@pytest.mark.parametrize('previous,new', [
    (Status.PENDING, Status.IN_PROGRESS),
    (Status.PENDING, Status.COMPLETED),
    (Status.IN_PROGRESS, Status.COMPLETED),
    (Status.IN_PROGRESS, Status.CANCELLED),
    (Status.COMPLETED, Status.PENDING),
    (Status.COMPLETED, Status.IN_PROGRESS),
    (Status.COMPLETED, Status.CANCELLED),
    (Status.CANCELLED, Status.CANCELLED),
])
def test_allowed(previous, new):
    assert can_transition(previous, new)


@pytest.mark.parametrize('previous,new', [
    (Status.CANCELLED, Status.PENDING),
    (Status.CANCELLED, Status.COMPLETED),
    (Status.CANCELLED, Status.IN_PROGRESS),
])
def test_rejected(previous, new):
    assert not can_transition(previous, new)
    with pytest.raises(InvalidTransition):
        check_transition(previous, new)


def test_plain_strings_are_accepted():
    assert can_transition('pending', 'in-progress')


def test_entering_completed_stamps_now():
    assert compute_completed_at(Status.IN_PROGRESS, Status.COMPLETED, None, now=NOW) == NOW


def test_creating_completed_task_stamps_now():
    assert compute_completed_at(None, Status.COMPLETED, None, now=NOW) == NOW


def test_staying_completed_keeps_stamp():
    assert compute_completed_at(Status.COMPLETED, Status.COMPLETED, EARLIER, now=NOW) == EARLIER


@pytest.mark.parametrize('new', [Status.PENDING, Status.IN_PROGRESS, Status.CANCELLED])
def test_leaving_completed_clears_stamp(new):
    assert compute_completed_at(Status.COMPLETED, new, EARLIER, now=NOW) is None


@pytest.mark.parametrize('previous', [Status.PENDING, Status.IN_PROGRESS, Status.COMPLETED])
def test_every_open_or_completed_status_can_be_cancelled(previous):
    assert can_transition(previous, Status.CANCELLED)


def test_only_cancelled_is_terminal():
    terminal = {status for status, targets in ALLOWED_TRANSITIONS.items() if not targets}
    assert terminal == {Status.CANCELLED}
