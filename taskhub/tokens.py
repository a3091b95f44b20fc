"""
Bearer token issuing and verification.

Tokens are stateless simplejwt access tokens: nothing is stored server side
and expiry is the only way a token stops being valid.
"""
import jwt
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken


class TokenVerificationError(Exception):
    """Base class for every reason a bearer token is rejected."""


class MalformedToken(TokenVerificationError):
    pass


class ExpiredToken(TokenVerificationError):
    pass


class SignatureInvalid(TokenVerificationError):
    pass


def issue_token(user_id) -> str:
    """Return a signed access token for ``user_id`` with the configured lifetime."""
    token = AccessToken()
    token[api_settings.USER_ID_CLAIM] = str(user_id)
    return str(token)


def verify_token(raw_token: str) -> str:
    """
    Check signature, expiry and shape of ``raw_token``.

    Returns:
        The user id carried by the token, as a string.

    Raises:
        ExpiredToken, SignatureInvalid or MalformedToken.
    """
    if not raw_token:
        raise MalformedToken('Token is empty')

    try:
        payload = jwt.decode(
            raw_token,
            api_settings.SIGNING_KEY,
            algorithms=[api_settings.ALGORITHM],
            options={'require': ['exp']},
        )
    except jwt.ExpiredSignatureError as exc:
        raise ExpiredToken('Token expired') from exc
    except jwt.InvalidSignatureError as exc:
        raise SignatureInvalid('Token signature is invalid') from exc
    except jwt.InvalidTokenError as exc:
        raise MalformedToken(str(exc)) from exc

    if payload.get(api_settings.TOKEN_TYPE_CLAIM) != AccessToken.token_type:
        raise MalformedToken('Not an access token')

    user_id = payload.get(api_settings.USER_ID_CLAIM)
    if user_id in (None, ''):
        raise MalformedToken('Token carries no user id')

    return str(user_id)
