"""
Bearer JWT authentication.

A missing token leaves the request anonymous so the permission layer can
answer 401, while a token that is present but unusable is rejected with 403.
"""
import logging
from typing import Optional, Tuple

from django.contrib.auth.models import User
from django.http import HttpRequest
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import AUTH_HEADER_TYPE_BYTES, JWTAuthentication

from taskhub.policy import Requester
from taskhub.tokens import ExpiredToken, TokenVerificationError, verify_token
from user.models import role_for
from utils.exceptions import TokenRejected

logger = logging.getLogger(__name__)


def authenticate_raw_token(raw_token: str) -> Tuple[User, Requester]:
    """
    Resolve a raw bearer token to its active user and requester context.

    Shared by the HTTP authentication class and the WebSocket consumer.
    """
    try:
        user_id = verify_token(raw_token)
    except ExpiredToken:
        raise TokenRejected('Token expired')
    except TokenVerificationError as exc:
        logger.info(f"Rejected bearer token: {exc}")
        raise TokenRejected('Invalid token')

    user = User.objects.select_related('profile').filter(pk=user_id).first()
    if user is None or not user.is_active:
        raise AuthenticationFailed('Invalid token or user not found')

    return user, Requester(user_id=user.pk, role=role_for(user))


class BearerJWTAuthentication(JWTAuthentication):
    """
    Reads the access token from the ``Authorization: Bearer`` header.

    On success ``request.auth`` holds a :class:`~taskhub.policy.Requester`,
    the explicit context every view passes on to the access policy.
    """

    def authenticate(self, request: HttpRequest) -> Optional[Tuple[User, Requester]]:
        header = self.get_header(request)
        if header is None:
            return None

        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None

        if isinstance(raw_token, bytes):
            raw_token = raw_token.decode('utf-8', errors='replace')

        return authenticate_raw_token(raw_token)

    def get_raw_token(self, header: bytes) -> Optional[bytes]:
        """
        ``Bearer`` with nothing after it counts as no token; anything other
        than exactly one value after it is a present but invalid token.
        """
        parts = header.split()
        if len(parts) < 2 or parts[0] not in AUTH_HEADER_TYPE_BYTES:
            return None
        if len(parts) != 2:
            raise TokenRejected('Invalid token')
        return parts[1]

    def authenticate_header(self, request: HttpRequest) -> str:
        return 'Bearer'
