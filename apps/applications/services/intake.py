"""Application intake and manager assignment."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from django.db import transaction
from django.utils import timezone

from apps.users.constants import UserRole
from apps.users.models import Profile

from .. import gate
from ..exceptions import NotFound, PermissionDenied, ValidationError
from ..forms import ApplicationDataForm, CustomerForm
from ..models import Application, Customer, Notification
from ..statuses import ApplicationStatus
from .transitions import load_application

logger = logging.getLogger(__name__)


def _form_errors(form) -> dict[str, list[str]]:
    return {
        field: [str(message) for message in messages]
        for field, messages in form.errors.items()
    }


def _resolve_manager(manager_id) -> Profile:
    try:
        manager = Profile.objects.select_related("user").get(pk=manager_id)
    except (Profile.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFound(f"Profile {manager_id} does not exist.") from exc

    if manager.role != UserRole.MANAGER.value or not manager.is_active:
        raise ValidationError(
            "Applications can only be assigned to an active manager.",
            errors={"assigned_manager": ["Select an active manager."]},
        )
    return manager


def create_application(
    actor: Optional[Profile],
    customer_data: Optional[Mapping[str, Any]] = None,
    application_data: Optional[Mapping[str, Any]] = None,
    *,
    customer: Optional[Customer] = None,
    assigned_manager_id=None,
) -> Application:
    """Create a Draft application for a new or existing customer.

    Input is validated in full before anything is written. A manager who
    creates an application is assigned to it unless another manager is
    named explicitly.
    """

    if actor is None or not actor.is_active:
        raise PermissionDenied("An active portal profile is required.")

    errors: dict[str, list[str]] = {}

    customer_form = None
    if customer is None:
        customer_form = CustomerForm(data=dict(customer_data or {}))
        if not customer_form.is_valid():
            errors.update(_form_errors(customer_form))

    data_form = ApplicationDataForm(data=dict(application_data or {}))
    if not data_form.is_valid():
        errors.update(_form_errors(data_form))

    if errors:
        raise ValidationError("The application is missing required details.", errors=errors)

    manager = None
    if assigned_manager_id is not None:
        if actor.role not in {UserRole.ADMIN.value, UserRole.MANAGER.value}:
            raise PermissionDenied("Only staff can assign a manager.")
        manager = _resolve_manager(assigned_manager_id)
    elif actor.role == UserRole.MANAGER.value:
        manager = actor

    with transaction.atomic():
        if customer is None:
            customer = customer_form.save()
        application = Application.objects.create(
            customer=customer,
            status=ApplicationStatus.DRAFT,
            created_by=actor,
            created_by_role=actor.role,
            assigned_manager=manager,
            application_data=data_form.to_payload(),
        )

    logger.info(
        "Draft application %s created by %s",
        application.pk,
        actor.pk,
        extra={
            "profile": actor,
            "context": {
                "action": "application.created",
                "application_id": str(application.pk),
                "created_by_role": actor.role,
            },
        },
    )
    return application


def assign_manager(application_id, manager_id, actor: Optional[Profile]) -> Application:
    """Point ``assigned_manager`` at an active manager. Admin only."""

    gate.ensure_admin(actor)
    application = load_application(application_id)
    manager = _resolve_manager(manager_id)

    if application.assigned_manager_id == manager.pk:
        return application

    application.assigned_manager = manager
    application.updated_at = timezone.now()
    application.save(update_fields=["assigned_manager", "updated_at"])

    Notification.objects.create(
        recipient=manager,
        application=application,
        message=f"{application.customer.company} has been assigned to you.",
        notification_type=Notification.NotificationType.ASSIGNMENT,
    )

    logger.info(
        "Application %s assigned to manager %s",
        application.pk,
        manager.pk,
        extra={
            "profile": actor,
            "context": {
                "action": "application.assigned",
                "application_id": str(application.pk),
                "manager_id": manager.pk,
            },
        },
    )
    return application


def mark_notification_read(notification_id, profile: Optional[Profile]) -> Notification:
    try:
        notification = Notification.objects.get(pk=notification_id)
    except (Notification.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFound(f"Notification {notification_id} does not exist.") from exc

    if profile is None or notification.recipient_id != profile.pk:
        raise PermissionDenied("You can only update your own notifications.")

    notification.mark_read()
    return notification


__all__ = ["assign_manager", "create_application", "mark_notification_read"]
