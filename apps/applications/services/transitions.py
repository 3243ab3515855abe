"""Transition executor: the only code path that changes an application's status."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.users.models import Profile

from .. import gate
from ..exceptions import NotFound, StaleApplication
from ..models import Application, StatusChange
from ..notifications import notify_status_change
from ..statuses import ensure_legal_transition, normalise_status

logger = logging.getLogger(__name__)

NotificationHook = Callable[[StatusChange], None]


def load_application(application_id) -> Application:
    try:
        return Application.objects.select_related(
            "customer", "created_by", "assigned_manager"
        ).get(pk=application_id)
    except (Application.DoesNotExist, DjangoValidationError, ValueError) as exc:
        raise NotFound(f"Application {application_id} does not exist.") from exc


def _run_hook(hook: NotificationHook, change: StatusChange) -> None:
    try:
        hook(change)
    except Exception:
        logger.exception(
            "Notification for application %s failed after status change %s",
            change.application_id,
            change.pk,
            extra={
                "context": {
                    "action": "application.notification.failed",
                    "application_id": str(change.application_id),
                    "status_change_id": change.pk,
                },
            },
        )


def transition(
    application_id,
    target_status,
    actor: Optional[Profile],
    comment: Optional[str] = None,
    *,
    expected_version: Optional[int] = None,
    notify: Optional[NotificationHook] = None,
) -> Application:
    """Move an application to ``target_status`` on behalf of ``actor``.

    Raises ``NotFound``, ``PermissionDenied``, ``InvalidTransition``,
    ``ValidationError`` or ``StaleApplication`` before anything is written.
    The status write and the audit row commit together. The notification
    hook runs afterwards and its failures are only logged.
    """

    application = load_application(application_id)

    # Ownership comes first so out-of-scope actors learn nothing about legality.
    actor = gate.ensure_in_scope(actor, application)
    target = normalise_status(target_status)
    current, target = ensure_legal_transition(application.status, target)
    gate.ensure_role_allows(actor, current, target)

    read_version = application.version
    if expected_version is not None and expected_version != read_version:
        raise StaleApplication()

    now = timezone.now()
    with transaction.atomic():
        updated = Application.objects.filter(
            pk=application.pk,
            version=read_version,
            status=current.value,
        ).update(
            status=target.value,
            version=F("version") + 1,
            updated_at=now,
        )
        if updated != 1:
            raise StaleApplication()

        change = StatusChange.objects.create(
            application=application,
            previous_status=current.value,
            new_status=target.value,
            changed_by=actor,
            changed_by_role=actor.role,
            comment=(comment or "").strip(),
        )

    application.status = target.value
    application.version = read_version + 1
    application.updated_at = now

    logger.info(
        "Application %s moved from %s to %s by %s",
        application.pk,
        current.value,
        target.value,
        actor.pk,
        extra={
            "profile": actor,
            "context": {
                "action": "application.transition",
                "application_id": str(application.pk),
                "previous_status": current.value,
                "new_status": target.value,
                "changed_by_role": actor.role,
            },
        },
    )

    _run_hook(notify or notify_status_change, change)

    return application


__all__ = ["load_application", "transition"]
