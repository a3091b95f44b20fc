"""
API error types.

Each maps to one status code; ``utils.exception_handler`` renders them as
``{"message": ...}`` bodies.
"""
from rest_framework import exceptions, status


class AccessDenied(exceptions.PermissionDenied):
    default_detail = 'Access denied'
    default_code = 'access_denied'


class TokenRejected(exceptions.APIException):
    """A bearer token was sent but is malformed, forged or expired."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Invalid token'
    default_code = 'token_rejected'


class BadRequest(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Bad request'
    default_code = 'bad_request'


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists'
    default_code = 'conflict'


class InvalidAttachment(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid attachment'
    default_code = 'invalid_attachment'


class TooManyAttachments(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Maximum 3 attachments allowed per task'
    default_code = 'too_many_attachments'
