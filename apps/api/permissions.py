"""DRF permission classes aligned with the portal's role model.

These only reflect the role-gate; per-application decisions stay in
``apps.applications.gate``.
"""

from __future__ import annotations

from rest_framework.permissions import BasePermission

from apps.users.constants import UserRole
from apps.users.models import get_profile
from apps.users.permissions import user_has_role


class HasActiveProfile(BasePermission):
    """Allow authenticated users whose portal profile is active."""

    message = "An active portal profile is required."

    def has_permission(self, request, view):  # type: ignore[override]
        profile = get_profile(request.user)
        return profile is not None and profile.is_active


class _RolePermission(BasePermission):
    """Base class delegating permission checks to ``user_has_role``."""

    role: UserRole

    def has_permission(self, request, view):  # type: ignore[override]
        return user_has_role(request.user, self.role)


class IsAdminRole(_RolePermission):
    role = UserRole.ADMIN
