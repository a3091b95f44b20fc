"""
Task status transitions and the ``completed_at`` bookkeeping that goes with them.

Both are plain functions the write paths call before saving; nothing here
touches the database.

The main path is pending -> in-progress -> completed. A completed task can be
reopened, and any status except cancelled can move to cancelled. Clients
also rely on two shortcuts, pending -> completed and in-progress -> pending,
so those are allowed too. Cancelled is the only terminal status.
"""
from django.utils import timezone

from .models import Status

ALLOWED_TRANSITIONS = {
    Status.PENDING: {Status.IN_PROGRESS, Status.COMPLETED, Status.CANCELLED},
    Status.IN_PROGRESS: {Status.PENDING, Status.COMPLETED, Status.CANCELLED},
    # completed can be reopened, so it is not terminal
    Status.COMPLETED: {Status.PENDING, Status.IN_PROGRESS, Status.CANCELLED},
    Status.CANCELLED: set(),
}


class InvalidTransition(Exception):
    def __init__(self, previous_status, new_status):
        self.previous_status = previous_status
        self.new_status = new_status
        super().__init__(f"Cannot change status from {previous_status} to {new_status}")


def can_transition(previous_status, new_status) -> bool:
    if previous_status == new_status:
        return True
    return Status(new_status) in ALLOWED_TRANSITIONS[Status(previous_status)]


def check_transition(previous_status, new_status) -> None:
    if not can_transition(previous_status, new_status):
        raise InvalidTransition(previous_status, new_status)


def compute_completed_at(previous_status, new_status, previous_completed_at, now=None):
    """
    Value ``completed_at`` must hold once the task is in ``new_status``.

    Entering ``completed`` stamps the current time, staying in it keeps the
    existing stamp, and any other status clears it. ``previous_status`` is
    None for a task that is being created.
    """
    if new_status != Status.COMPLETED:
        return None
    if previous_status == Status.COMPLETED and previous_completed_at is not None:
        return previous_completed_at
    return now or timezone.now()
