import pytest
from django.contrib import admin

from task.admin import TaskAdmin
from task.models import Status, Task

pytestmark = pytest.mark.django_db


@pytest.fixture
def task_admin():
    return TaskAdmin(Task, admin.site)


def test_admin_edit_keeps_completed_at_in_step(task_admin, regular_user, make_task):
    task = make_task(regular_user, status=Status.IN_PROGRESS)

    task.status = Status.COMPLETED
    task_admin.save_model(None, task, None, change=True)
    task.refresh_from_db()
    stamped = task.completed_at
    assert stamped is not None

    task.title = 'Edited'
    task_admin.save_model(None, task, None, change=True)
    task.refresh_from_db()
    assert task.completed_at == stamped

    task.status = Status.PENDING
    task_admin.save_model(None, task, None, change=True)
    task.refresh_from_db()
    assert task.completed_at is None
