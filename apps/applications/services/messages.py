"""Per-application message thread."""
from __future__ import annotations

import logging
from typing import List, Optional

from django.db import transaction

from apps.users.models import Profile

from .. import gate
from ..exceptions import ValidationError
from ..models import ApplicationMessage, Notification
from .transitions import load_application

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4000


def list_messages(application_id, profile: Optional[Profile]) -> List[ApplicationMessage]:
    """Return the thread oldest first. Same scope rule as acting on the application."""

    application = load_application(application_id)
    gate.ensure_in_scope(profile, application)
    return list(application.messages.select_related("sender__user"))


def post_message(application_id, sender: Optional[Profile], text) -> ApplicationMessage:
    """Append a message from ``sender`` and notify the other participants."""

    application = load_application(application_id)
    sender = gate.ensure_in_scope(sender, application)

    text = (text or "").strip()
    if not text:
        raise ValidationError("The message cannot be empty.", {"message": ["This field is required."]})
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ValidationError(
            "The message is too long.",
            {"message": [f"Ensure this field has no more than {MAX_MESSAGE_LENGTH} characters."]},
        )

    with transaction.atomic():
        message = ApplicationMessage.objects.create(
            application=application,
            sender=sender,
            sender_role=sender.role,
            message=text,
        )
        for recipient in application.participants(exclude_id=sender.pk):
            Notification.objects.create(
                recipient=recipient,
                application=application,
                message=f"{application.customer.company}: new message from {sender.display_name}.",
                notification_type=Notification.NotificationType.MESSAGE,
            )

    logger.info(
        "Message %s posted on application %s",
        message.pk,
        application.pk,
        extra={
            "profile": sender,
            "context": {
                "action": "application.message.posted",
                "application_id": str(application.pk),
                "message_id": message.pk,
            },
        },
    )
    return message


__all__ = ["MAX_MESSAGE_LENGTH", "list_messages", "post_message"]
