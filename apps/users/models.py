"""Database models and helpers for the users app."""

from __future__ import annotations

from typing import Optional

from django.conf import settings
from django.db import models

from .constants import ROLE_CHOICES, UserRole


class Profile(models.Model):
    """Portal account metadata. The role is fixed for the lifetime of the account."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    name = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=UserRole.USER.value)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name", "id")
        constraints = [
            models.CheckConstraint(
                condition=models.Q(role__in=[role.value for role in UserRole]),
                name="users_profile_role_valid",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - human-readable helper
        return f"{self.display_name} ({self.role})"

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        full_name = self.user.get_full_name()
        return full_name or self.user.get_username()

    @property
    def email(self) -> str:
        return getattr(self.user, "email", "") or ""

    @property
    def user_role(self) -> UserRole:
        return UserRole(self.role)

    def has_role(self, role: UserRole) -> bool:
        return self.role == UserRole(role).value


def get_profile(user) -> Optional[Profile]:
    """Return the profile attached to ``user`` or ``None``."""

    if user is None or not getattr(user, "is_authenticated", False):
        return None

    try:
        return user.profile
    except (AttributeError, Profile.DoesNotExist):
        return None


__all__ = ["Profile", "get_profile"]
