from django.contrib.auth.models import User
from django.db import models


class Role(models.TextChoices):
    USER = 'user', 'User'
    ADMIN = 'admin', 'Admin'


class UserProfile(models.Model):
    """Per-user data that Django's auth ``User`` has no column for."""
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='profile')
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.USER)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user.email} ({self.role})"


def role_for(user) -> str:
    """Role of ``user``; superusers created from the shell count as admins."""
    try:
        return user.profile.role
    except UserProfile.DoesNotExist:
        return Role.ADMIN if user.is_superuser else Role.USER
