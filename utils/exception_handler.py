"""
DRF ``EXCEPTION_HANDLER``.

Every error response has a ``message`` key; validation failures also carry
an ``errors`` list of ``{"field", "message"}`` items.

Authentication classes import ``utils.exceptions``, so that module must never
import ``rest_framework.views``; this one may.
"""
import logging

from django.conf import settings
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger(__name__)


def _flatten_errors(detail, field=None):
    """Turn DRF's nested error detail into a flat list of field/message pairs."""
    if isinstance(detail, dict):
        errors = []
        for key, value in detail.items():
            name = key if field is None else f"{field}.{key}"
            if key == 'non_field_errors':
                name = field
            errors.extend(_flatten_errors(value, name))
        return errors
    if isinstance(detail, list):
        errors = []
        for item in detail:
            errors.extend(_flatten_errors(item, field))
        return errors
    return [{'field': field, 'message': str(detail)}]


def api_exception_handler(exc, context):
    """DRF ``EXCEPTION_HANDLER``: uniform JSON bodies, generic 500s."""
    if isinstance(exc, Http404):
        exc = exceptions.NotFound(str(exc) or None)
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'view'}: {exc}")
        set_rollback()
        body = {'message': 'Internal server error'}
        if settings.DEBUG:
            body['error'] = str(exc)
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, exceptions.ValidationError):
        response.data = {
            'message': 'Validation failed',
            'errors': _flatten_errors(exc.detail),
        }
        return response

    if isinstance(exc, exceptions.NotAuthenticated):
        message = 'Access token required'
    elif isinstance(exc.detail, dict) and 'detail' in exc.detail:
        # simplejwt wraps its messages as {'detail': ..., 'code': ...}
        message = str(exc.detail['detail'])
    elif isinstance(exc.detail, (dict, list)):
        message = 'Request failed'
    else:
        message = str(exc.detail)

    response.data = {'message': message}
    return response
