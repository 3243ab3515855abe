"""Notification hook run after a successful status transition."""

from __future__ import annotations

import logging
from typing import List

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

from .exceptions import DeliveryFailure
from .models import Application, ApplicationMessage, Notification, StatusChange
from .services.dashboard import build_status_counts
from .statuses import display_status
from .tasks import send_status_change_email_task

logger = logging.getLogger(__name__)

STAFF_GROUP_NAME = "staff_application_updates"


def build_status_message(change: StatusChange) -> str:
    application = change.application
    message = (
        f"{application.customer.company}: status changed from "
        f"{display_status(change.previous_status)} to {display_status(change.new_status)}."
    )
    if change.comment:
        message = f"{message} Comment: {change.comment}"
    return message


def post_status_message(change: StatusChange) -> ApplicationMessage:
    """Append the change to the application's message thread."""

    message = f"Application status changed to: {display_status(change.new_status)}"
    if change.comment:
        message = f"{message}\n{change.comment}"
    return ApplicationMessage.objects.create(
        application=change.application,
        sender=change.changed_by,
        sender_role=change.changed_by_role,
        kind=ApplicationMessage.Kind.STATUS_CHANGE,
        status_change=change,
        message=message,
    )


def create_in_app_notifications(change: StatusChange) -> List[Notification]:
    message = build_status_message(change)
    return [
        Notification.objects.create(
            recipient=profile,
            application=change.application,
            status_change=change,
            message=message,
            notification_type=Notification.NotificationType.STATUS_CHANGE,
        )
        for profile in change.audience()
    ]


def broadcast_status_change(change: StatusChange) -> None:
    """Push the change and fresh counts to connected staff dashboards."""

    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.debug(
            "No channel layer configured; skipping broadcast for application %s",
            change.application_id,
        )
        return

    try:
        async_to_sync(channel_layer.group_send)(
            STAFF_GROUP_NAME,
            {
                "type": "application_status_changed",
                "payload": {
                    "application": {
                        "id": str(change.application_id),
                        "previous_status": change.previous_status,
                        "new_status": change.new_status,
                        "changed_by_role": change.changed_by_role,
                    },
                    "status_counts": build_status_counts(Application.objects.all()),
                },
            },
        )
    except Exception:  # pragma: no cover - defensive logging
        logger.exception("Failed to broadcast status change for application %s", change.application_id)


def notify_status_change(change: StatusChange) -> None:
    """Tell the owner and assigned manager about ``change``.

    The change is posted to the application's message thread, in-app
    notifications are written, the email is queued on Celery and staff
    dashboards are refreshed over Channels. Raises
    ``DeliveryFailure`` when the in-app notification or email hand-off fails.
    """

    try:
        with transaction.atomic():
            post_status_message(change)
            create_in_app_notifications(change)
        send_status_change_email_task.delay(change.pk)
    except Exception as exc:
        raise DeliveryFailure(
            f"Could not deliver the notification for application {change.application_id}."
        ) from exc

    broadcast_status_change(change)


__all__ = [
    "STAFF_GROUP_NAME",
    "broadcast_status_change",
    "build_status_message",
    "create_in_app_notifications",
    "notify_status_change",
    "post_status_message",
]
