"""Error taxonomy for the application workflow."""

from __future__ import annotations

from typing import Mapping, Sequence

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied


class WorkflowError(Exception):
    """Base class for errors raised by the application workflow."""

    code = "workflow_error"
    default_message = "The request could not be completed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(WorkflowError):
    """A referenced application, customer or profile does not exist."""

    code = "not_found"
    default_message = "The requested record does not exist."


class InvalidTransition(WorkflowError):
    """The requested status change is not in the transition table."""

    code = "invalid_transition"
    default_message = "This status change is not allowed."

    def __init__(self, current=None, target=None, message: str | None = None):
        self.current = current
        self.target = target
        if message is None and current is not None and target is not None:
            message = f"Cannot move from {_label(current)} to {_label(target)}"
        super().__init__(message)


class PermissionDenied(WorkflowError, DjangoPermissionDenied):
    """The actor's role or ownership does not authorise the operation."""

    code = "permission_denied"
    default_message = "You are not allowed to perform this action."


class ValidationError(WorkflowError):
    """Malformed input, such as missing required application fields."""

    code = "validation_error"
    default_message = "The submitted data is invalid."

    def __init__(
        self,
        message: str | None = None,
        errors: Mapping[str, Sequence[str]] | None = None,
    ):
        self.errors = {key: list(value) for key, value in (errors or {}).items()}
        super().__init__(message)


class StaleApplication(WorkflowError):
    """The application changed between read and write."""

    code = "stale_application"
    default_message = (
        "The application was updated by someone else. Reload it and try again."
    )


class DeliveryFailure(WorkflowError):
    """A notification could not be delivered. Never fatal to a transition."""

    code = "delivery_failure"
    default_message = "The notification could not be delivered."


def _label(status) -> str:
    label = getattr(status, "label", None)
    if label:
        return str(label)
    return str(status)


__all__ = [
    "DeliveryFailure",
    "InvalidTransition",
    "NotFound",
    "PermissionDenied",
    "StaleApplication",
    "ValidationError",
    "WorkflowError",
]
