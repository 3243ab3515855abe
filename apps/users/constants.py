"""Constants and role mappings for the users app."""

from enum import Enum
from typing import Dict, FrozenSet


class UserRole(str, Enum):
    """Roles a portal profile can hold. Every profile has exactly one."""

    ADMIN = "admin"
    MANAGER = "manager"
    PARTNER = "partner"
    USER = "user"

    @property
    def label(self) -> str:
        return ROLE_LABELS[self]


ROLE_LABELS: Dict[UserRole, str] = {
    UserRole.ADMIN: "Admin",
    UserRole.MANAGER: "Manager",
    UserRole.PARTNER: "Partner",
    UserRole.USER: "User",
}

ROLE_CHOICES = [(role.value, ROLE_LABELS[role]) for role in UserRole]

# Roles whose applications appear as separate slices on the admin dashboard.
SUBMITTER_ROLES: tuple[UserRole, ...] = (
    UserRole.USER,
    UserRole.PARTNER,
    UserRole.MANAGER,
)

STAFF_ROLES: FrozenSet[UserRole] = frozenset({UserRole.ADMIN, UserRole.MANAGER})
