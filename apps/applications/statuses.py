"""Application statuses and the legal transitions between them."""

from __future__ import annotations

import re
from typing import Dict, FrozenSet, Optional

from django.db import models

from .exceptions import InvalidTransition, ValidationError


class ApplicationStatus(models.TextChoices):
    """Canonical application statuses, declared in name order."""

    COMPLETED = "completed", "Completed"
    DRAFT = "draft", "Draft"
    NEED_MORE_INFO = "need_more_info", "Need More Info"
    PAID = "paid", "Paid"
    REJECTED = "rejected", "Rejected"
    RETURN = "return", "Return"
    SUBMIT = "submit", "Submit"


TRANSITIONS: Dict[ApplicationStatus, FrozenSet[ApplicationStatus]] = {
    ApplicationStatus.DRAFT: frozenset({ApplicationStatus.SUBMIT}),
    ApplicationStatus.SUBMIT: frozenset(
        {
            ApplicationStatus.NEED_MORE_INFO,
            ApplicationStatus.RETURN,
            ApplicationStatus.REJECTED,
            ApplicationStatus.COMPLETED,
        }
    ),
    ApplicationStatus.NEED_MORE_INFO: frozenset(
        {ApplicationStatus.SUBMIT, ApplicationStatus.RETURN}
    ),
    ApplicationStatus.RETURN: frozenset({ApplicationStatus.SUBMIT}),
    ApplicationStatus.COMPLETED: frozenset({ApplicationStatus.PAID}),
    ApplicationStatus.REJECTED: frozenset(),
    ApplicationStatus.PAID: frozenset(),
}
"""The single source of truth for status changes. Self-loops are not listed."""

# Transitions an applicant (partner or user) may trigger on their own work.
APPLICANT_TRANSITIONS: FrozenSet[tuple[ApplicationStatus, ApplicationStatus]] = frozenset(
    {
        (ApplicationStatus.DRAFT, ApplicationStatus.SUBMIT),
        (ApplicationStatus.NEED_MORE_INFO, ApplicationStatus.SUBMIT),
        (ApplicationStatus.RETURN, ApplicationStatus.SUBMIT),
    }
)

# Spellings seen in older records and clients, keyed by their normalised form.
LEGACY_ALIASES: Dict[str, ApplicationStatus] = {
    "submitted": ApplicationStatus.SUBMIT,
    "needmoreinfo": ApplicationStatus.NEED_MORE_INFO,
    "returned": ApplicationStatus.RETURN,
}

STATUS_VALUES: tuple[str, ...] = tuple(status.value for status in ApplicationStatus)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z])(?=[A-Z])")


def _normalise_key(value: str) -> str:
    key = _CAMEL_BOUNDARY.sub("_", value.strip())
    return re.sub(r"[\s\-]+", "_", key).lower()


def coerce_status(value) -> Optional[ApplicationStatus]:
    """Return the canonical status for ``value`` or ``None`` if unrecognised."""

    if isinstance(value, ApplicationStatus):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    key = _normalise_key(value)
    if key in STATUS_VALUES:
        return ApplicationStatus(key)
    return LEGACY_ALIASES.get(key) or LEGACY_ALIASES.get(key.replace("_", ""))


def normalise_status(value) -> ApplicationStatus:
    """Map any accepted spelling of a status onto the canonical enum."""

    status = coerce_status(value)
    if status is None:
        raise ValidationError(
            f"Unknown application status: {value!r}",
            errors={"status": [f"{value!r} is not a valid status."]},
        )
    return status


def display_status(value) -> str:
    """Return the human readable label for a stored or legacy status string."""

    status = coerce_status(value)
    if status is None:
        return str(value or "")
    return str(status.label)


def allowed_targets(status) -> FrozenSet[ApplicationStatus]:
    return TRANSITIONS[normalise_status(status)]


def is_terminal(status) -> bool:
    return not allowed_targets(status)


def is_legal_transition(current, target) -> bool:
    return normalise_status(target) in allowed_targets(current)


def ensure_legal_transition(current, target) -> tuple[ApplicationStatus, ApplicationStatus]:
    """Return the canonical pair or raise ``InvalidTransition``."""

    current_status = normalise_status(current)
    target_status = normalise_status(target)
    if target_status not in TRANSITIONS[current_status]:
        raise InvalidTransition(current_status, target_status)
    return current_status, target_status


def is_applicant_transition(current, target) -> bool:
    """Return ``True`` for draft submission and resubmission moves."""

    return (normalise_status(current), normalise_status(target)) in APPLICANT_TRANSITIONS


__all__ = [
    "APPLICANT_TRANSITIONS",
    "ApplicationStatus",
    "LEGACY_ALIASES",
    "STATUS_VALUES",
    "TRANSITIONS",
    "allowed_targets",
    "coerce_status",
    "display_status",
    "ensure_legal_transition",
    "is_applicant_transition",
    "is_legal_transition",
    "is_terminal",
    "normalise_status",
]
