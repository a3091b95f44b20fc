import pytest
from django.conf import settings
from django.core.management import call_command
from django.http import Http404
from django.utils.module_loading import import_string
from rest_framework import exceptions
from rest_framework_simplejwt.exceptions import AuthenticationFailed as SimpleJWTAuthenticationFailed

from utils.exception_handler import api_exception_handler
from utils.exceptions import Conflict


def test_configured_classes_import_cleanly():
    for path in settings.REST_FRAMEWORK['DEFAULT_AUTHENTICATION_CLASSES']:
        assert import_string(path)
    assert import_string(settings.REST_FRAMEWORK['EXCEPTION_HANDLER']) is api_exception_handler


def test_system_check_passes():
    call_command('check')


def test_plain_detail_becomes_message():
    response = api_exception_handler(Conflict('Email is already taken'), {})

    assert response.status_code == 409
    assert response.data == {'message': 'Email is already taken'}


def test_wrapped_detail_is_unwrapped():
    response = api_exception_handler(SimpleJWTAuthenticationFailed('User is inactive'), {})

    assert response.status_code == 401
    assert response.data == {'message': 'User is inactive'}


def test_validation_errors_are_flattened():
    exc = exceptions.ValidationError({'title': ['This field is required.'], 'non_field_errors': ['Bad']})

    response = api_exception_handler(exc, {})

    assert response.status_code == 400
    assert response.data == {
        'message': 'Validation failed',
        'errors': [
            {'field': 'title', 'message': 'This field is required.'},
            {'field': None, 'message': 'Bad'},
        ],
    }


def test_django_404_is_translated():
    response = api_exception_handler(Http404('Task not found'), {})

    assert response.status_code == 404
    assert response.data == {'message': 'Task not found'}


@pytest.mark.django_db
def test_unexpected_error_is_a_generic_500(settings):
    settings.DEBUG = False

    response = api_exception_handler(RuntimeError('boom'), {})

    assert response.status_code == 500
    assert response.data == {'message': 'Internal server error'}
