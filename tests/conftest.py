from datetime import timedelta

import pytest
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone
from rest_framework.test import APIClient

from task.adapters.viewset.task_viewset import TaskViewset
from task.models import Priority, Status, Task
from taskhub.tokens import issue_token
from user.adapters.viewsets.user_viewset import UserViewSet
from user.models import Role
from user.services import create_user

PDF_BYTES = b'%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << /Root 1 0 R >>\n%%EOF\n'


class RecordingRegistry:
    """Stands in for the connection registry and remembers every event."""

    def __init__(self):
        self.sent = []

    def notify(self, user_id, event):
        self.sent.append((str(user_id), event))
        return True

    def events_for(self, user_id, name=None):
        return [
            event for uid, event in self.sent
            if uid == str(user_id) and (name is None or event['event'] == name)
        ]


@pytest.fixture(autouse=True)
def _test_settings(settings, tmp_path):
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    settings.MEDIA_ROOT = str(tmp_path / 'media')
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def registry(monkeypatch):
    fake = RecordingRegistry()
    monkeypatch.setattr(TaskViewset, 'registry', fake)
    monkeypatch.setattr(UserViewSet, 'registry', fake)
    return fake


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_user(db):
    counter = {'n': 0}

    def _make(email=None, password='secret123', role=Role.USER, first_name='Test', last_name='User'):
        counter['n'] += 1
        return create_user(
            email=email or f"user{counter['n']}@example.com",
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=role,
        )

    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user(email='admin@example.com', role=Role.ADMIN, first_name='Ada', last_name='Admin')


@pytest.fixture
def regular_user(make_user):
    return make_user(email='alice@example.com', first_name='Alice', last_name='Smith')


@pytest.fixture
def other_user(make_user):
    return make_user(email='bob@example.com', first_name='Bob', last_name='Jones')


@pytest.fixture
def auth_client():
    def _client(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(user.pk)}")
        return client

    return _client


@pytest.fixture
def future_due():
    return timezone.now() + timedelta(days=3)


@pytest.fixture
def make_task(db, future_due):
    def _make(assigned_to, created_by=None, **fields):
        values = {
            'title': 'Write report',
            'description': 'Quarterly numbers',
            'status': Status.PENDING,
            'priority': Priority.MEDIUM,
            'due_date': future_due,
        }
        values.update(fields)
        return Task.objects.create(assigned_to=assigned_to, created_by=created_by or assigned_to, **values)

    return _make


@pytest.fixture
def pdf_file():
    def _file(name='report.pdf', content=PDF_BYTES, content_type='application/pdf'):
        return SimpleUploadedFile(name, content, content_type=content_type)

    return _file
