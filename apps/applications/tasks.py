"""Background tasks for application notifications."""
from __future__ import annotations

import logging

from celery import shared_task

from .emails import send_status_change_email, send_submission_confirmation_email
from .models import StatusChange
from .statuses import ApplicationStatus

logger = logging.getLogger(__name__)


@shared_task(name="applications.send_status_change_email")
def send_status_change_email_task(status_change_id: int) -> None:
    """Email the parties of an application about a recorded status change."""

    try:
        change = StatusChange.objects.select_related(
            "application__customer",
            "application__created_by__user",
            "application__assigned_manager__user",
            "changed_by__user",
        ).get(pk=status_change_id)
    except StatusChange.DoesNotExist:  # pragma: no cover - defensive guard
        logger.warning(
            "Status change %s disappeared before its email could be sent.",
            status_change_id,
            extra={
                "context": {
                    "action": "status_change_email.missing",
                    "status_change_id": status_change_id,
                },
            },
        )
        return

    context = {
        "status_change_id": status_change_id,
        "application_id": str(change.application_id),
        "new_status": change.new_status,
    }

    try:
        sent = send_status_change_email(change)
        if (
            change.previous_status == ApplicationStatus.DRAFT
            and change.new_status == ApplicationStatus.SUBMIT
        ):
            send_submission_confirmation_email(change.application)
    except Exception:
        logger.exception(
            "Failed to send status change email for application %s",
            change.application_id,
            extra={"context": {"action": "status_change_email.error", **context}},
        )
        return

    logger.info(
        "Status change email sent for application %s to %s recipient(s)",
        change.application_id,
        sent,
        extra={"context": {"action": "status_change_email.sent", **context}},
    )
