from datetime import datetime, timedelta, timezone as dt_timezone

import jwt
import pytest
from rest_framework_simplejwt.settings import api_settings

from taskhub.tokens import ExpiredToken, MalformedToken, SignatureInvalid, issue_token, verify_token


def _encode(payload, key=None):
    return jwt.encode(payload, key or api_settings.SIGNING_KEY, algorithm=api_settings.ALGORITHM)


def _claims(**overrides):
    now = datetime.now(dt_timezone.utc)
    claims = {
        'token_type': 'access',
        'user_id': '42',
        'iat': now,
        'exp': now + timedelta(hours=1),
        'jti': 'abc',
    }
    claims.update(overrides)
    return claims


def test_issued_token_verifies_to_same_user():
    assert verify_token(issue_token(7)) == '7'


def test_issued_token_lifetime_follows_settings():
    payload = jwt.decode(issue_token(7), api_settings.SIGNING_KEY, algorithms=[api_settings.ALGORITHM])
    lifetime = payload['exp'] - payload['iat']
    assert lifetime == int(api_settings.ACCESS_TOKEN_LIFETIME.total_seconds())


def test_expired_token():
    past = datetime.now(dt_timezone.utc) - timedelta(hours=2)
    token = _encode(_claims(iat=past, exp=past + timedelta(minutes=1)))
    with pytest.raises(ExpiredToken):
        verify_token(token)


def test_wrong_signing_key():
    token = _encode(_claims(), key='not-the-signing-key-at-all-0123456789')
    with pytest.raises(SignatureInvalid):
        verify_token(token)


@pytest.mark.parametrize('raw', ['', 'garbage', 'a.b.c'])
def test_malformed_token(raw):
    with pytest.raises(MalformedToken):
        verify_token(raw)


def test_token_without_expiry_is_rejected():
    claims = _claims()
    del claims['exp']
    with pytest.raises(MalformedToken):
        verify_token(_encode(claims))


def test_refresh_token_is_not_accepted():
    with pytest.raises(MalformedToken):
        verify_token(_encode(_claims(token_type='refresh')))


def test_token_without_user_id_is_rejected():
    claims = _claims()
    del claims['user_id']
    with pytest.raises(MalformedToken):
        verify_token(_encode(claims))
