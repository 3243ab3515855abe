"""Role-gate deciding which profiles may act on which applications.

Every role check in the portal goes through this module. API permission
classes and views only reflect its decisions.

* ``admin`` may perform any legal transition on any application.
* ``manager`` may act on applications they created or that are assigned to
  them, with any legal transition.
* ``partner`` and ``user`` may act only on applications they created, and
  only to submit a draft or resubmit after a request for changes.
"""

from __future__ import annotations

from django.db.models import Q, QuerySet

from apps.users.constants import UserRole
from apps.users.models import Profile

from .exceptions import PermissionDenied
from .statuses import (
    ApplicationStatus,
    allowed_targets,
    is_applicant_transition,
    normalise_status,
)


def _require_active(profile: Profile | None) -> Profile:
    if profile is None:
        raise PermissionDenied("An active portal profile is required.")
    if not profile.is_active:
        raise PermissionDenied("This account has been deactivated.")
    return profile


def is_owner(profile: Profile, application) -> bool:
    return application.created_by_id == profile.pk


def is_assigned_manager(profile: Profile, application) -> bool:
    return (
        profile.role == UserRole.MANAGER.value
        and application.assigned_manager_id is not None
        and application.assigned_manager_id == profile.pk
    )


def in_scope(profile: Profile, application) -> bool:
    """Return ``True`` when ``application`` falls inside the profile's slice."""

    if not profile.is_active:
        return False
    if profile.role == UserRole.ADMIN.value:
        return True
    if profile.role == UserRole.MANAGER.value:
        return is_owner(profile, application) or is_assigned_manager(profile, application)
    return is_owner(profile, application)


def can_view(profile: Profile | None, application) -> bool:
    return profile is not None and in_scope(profile, application)


def ensure_in_scope(profile: Profile | None, application) -> Profile:
    """Raise ``PermissionDenied`` unless the profile may act on ``application``."""

    profile = _require_active(profile)
    if not in_scope(profile, application):
        raise PermissionDenied(
            f"{profile.user_role.label} accounts can only act on their own "
            "or assigned applications."
        )
    return profile


def ensure_role_allows(profile: Profile, current, target) -> None:
    """Raise ``PermissionDenied`` when the role may not perform ``current -> target``."""

    if profile.role in {UserRole.ADMIN.value, UserRole.MANAGER.value}:
        return
    if is_applicant_transition(current, target):
        return

    target_status = normalise_status(target)
    raise PermissionDenied(
        f"{profile.user_role.label} accounts cannot move an application "
        f"to {target_status.label}."
    )


def check_transition_permission(profile: Profile | None, application, target) -> None:
    """Apply the full role-gate for ``application -> target``."""

    profile = ensure_in_scope(profile, application)
    ensure_role_allows(profile, application.status, target)


def can_transition(profile: Profile | None, application, target) -> bool:
    try:
        check_transition_permission(profile, application, target)
    except PermissionDenied:
        return False
    return True


def permitted_targets(profile: Profile | None, application) -> list[ApplicationStatus]:
    """Return the legal targets this profile could choose for ``application``."""

    if profile is None or not in_scope(profile, application):
        return []
    return sorted(
        (
            target
            for target in allowed_targets(application.status)
            if can_transition(profile, application, target)
        ),
        key=lambda status: status.value,
    )


def visible_applications(profile: Profile | None, queryset: QuerySet) -> QuerySet:
    """Restrict ``queryset`` to the applications ``profile`` may see."""

    if profile is None or not profile.is_active:
        return queryset.none()
    if profile.role == UserRole.ADMIN.value:
        return queryset
    if profile.role == UserRole.MANAGER.value:
        return queryset.filter(Q(created_by=profile) | Q(assigned_manager=profile))
    return queryset.filter(created_by=profile)


def ensure_admin(profile: Profile | None) -> Profile:
    profile = _require_active(profile)
    if profile.role != UserRole.ADMIN.value:
        raise PermissionDenied("Only administrators can perform this action.")
    return profile


__all__ = [
    "can_transition",
    "can_view",
    "check_transition_permission",
    "ensure_admin",
    "ensure_in_scope",
    "ensure_role_allows",
    "in_scope",
    "permitted_targets",
    "visible_applications",
]
