import logging

from django.contrib.auth.hashers import check_password, make_password
from django.contrib.auth.models import User
from django.db import transaction

from .models import Role, UserProfile

logger = logging.getLogger(__name__)


def hash_password(plaintext: str) -> str:
    return make_password(plaintext)


def verify_password(plaintext: str, password_hash: str) -> bool:
    return check_password(plaintext, password_hash)


def normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def email_taken(email: str, exclude_user_id=None) -> bool:
    qs = User.objects.filter(email__iexact=normalize_email(email))
    if exclude_user_id is not None:
        qs = qs.exclude(pk=exclude_user_id)
    return qs.exists()


def find_user_by_email(email: str):
    return User.objects.select_related('profile').filter(email__iexact=normalize_email(email)).first()


@transaction.atomic
def create_user(email, password, first_name, last_name, role=Role.USER) -> User:
    """
    Create an auth user and its profile.

    The email doubles as the username so Django's unique username constraint
    backs up the case-insensitive email check done by the callers.
    """
    email = normalize_email(email)
    user = User(
        username=email,
        email=email,
        first_name=first_name,
        last_name=last_name,
        password=hash_password(password),
        is_active=True,
    )
    user.save()
    UserProfile.objects.create(user=user, role=role)
    logger.info(f"Created user {user.pk} with role {role}")
    return user
