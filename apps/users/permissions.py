"""Helpers for working with user roles and permissions."""

from __future__ import annotations

from typing import Iterable, Union

from .constants import UserRole
from .models import get_profile


RoleLike = Union[UserRole, str]


def normalise_role(role: RoleLike) -> UserRole:
    if isinstance(role, UserRole):
        return role

    if isinstance(role, str):
        try:
            return UserRole(role.strip().lower())
        except ValueError as exc:
            raise KeyError(f"Unknown role: {role}") from exc

    raise TypeError(f"Role must be a UserRole or string, got {type(role)!r}")


def user_has_role(user, role: RoleLike) -> bool:
    """Return ``True`` if the user's active profile carries ``role``."""

    profile = get_profile(user)
    if profile is None or not profile.is_active:
        return False

    return profile.has_role(normalise_role(role))


def user_has_any_role(user, roles: Iterable[RoleLike]) -> bool:
    """Return ``True`` if the user matches any of the provided roles."""

    return any(user_has_role(user, role) for role in roles)
