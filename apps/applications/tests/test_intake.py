"""Tests for application intake, manager assignment and notification reads."""

from __future__ import annotations

import pytest

from apps.applications.exceptions import NotFound, PermissionDenied, ValidationError
from apps.applications.models import Application, Customer, Notification
from apps.applications.services.intake import (
    assign_manager,
    create_application,
    mark_notification_read,
)
from apps.applications.statuses import ApplicationStatus as S
from apps.users.constants import UserRole
from tests.utils import application_payload, customer_payload


@pytest.mark.django_db
@pytest.mark.parametrize("role", [UserRole.USER, UserRole.PARTNER, UserRole.ADMIN])
def test_create_application_starts_as_draft(role, profile_factory):
    actor = profile_factory(role=role)

    application = create_application(actor, customer_payload(), application_payload())

    assert application.status == S.DRAFT
    assert application.version == 1
    assert application.created_by == actor
    assert application.created_by_role == role.value
    assert application.assigned_manager is None
    assert application.customer.company == "Haddad Trading FZE"
    assert application.application_data["amount"] == "150000"
    assert application.application_data["number_of_shareholders"] == 2


@pytest.mark.django_db
def test_manager_created_application_is_self_assigned(profile_factory):
    manager = profile_factory(role=UserRole.MANAGER)

    application = create_application(manager, customer_payload(), {})

    assert application.assigned_manager == manager


@pytest.mark.django_db
def test_missing_fields_raise_before_any_write(profile_factory):
    user = profile_factory(role=UserRole.USER)
    payload = customer_payload(company="", mobile="12")

    with pytest.raises(ValidationError) as excinfo:
        create_application(user, payload, application_payload(number_of_shareholders=0))

    errors = excinfo.value.errors
    assert "company" in errors
    assert "mobile" in errors
    assert "number_of_shareholders" in errors
    assert not Customer.objects.exists()
    assert not Application.objects.exists()


@pytest.mark.django_db
def test_duplicate_preferred_banks_are_rejected(profile_factory):
    user = profile_factory(role=UserRole.USER)

    with pytest.raises(ValidationError) as excinfo:
        create_application(
            user,
            customer_payload(),
            application_payload(preferred_bank_2="emirates nbd"),
        )

    assert "__all__" in excinfo.value.errors


@pytest.mark.django_db
def test_inactive_actor_cannot_create(profile_factory):
    inactive = profile_factory(role=UserRole.USER, is_active=False)

    with pytest.raises(PermissionDenied):
        create_application(inactive, customer_payload(), {})
    with pytest.raises(PermissionDenied):
        create_application(None, customer_payload(), {})


@pytest.mark.django_db
def test_applicants_cannot_pick_a_manager(profile_factory):
    user = profile_factory(role=UserRole.USER)
    manager = profile_factory(role=UserRole.MANAGER)

    with pytest.raises(PermissionDenied):
        create_application(user, customer_payload(), {}, assigned_manager_id=manager.pk)


@pytest.mark.django_db
def test_existing_customer_can_be_reused(profile_factory, customer_factory):
    partner = profile_factory(role=UserRole.PARTNER)
    customer = customer_factory()

    application = create_application(partner, application_data={}, customer=customer)

    assert application.customer == customer
    assert Customer.objects.count() == 1


@pytest.mark.django_db
def test_admin_assigns_manager_and_notifies(profile_factory, application_factory):
    admin = profile_factory(role=UserRole.ADMIN)
    manager = profile_factory(role=UserRole.MANAGER)
    application = application_factory(status=S.SUBMIT)

    result = assign_manager(application.pk, manager.pk, admin)

    assert result.assigned_manager == manager
    application.refresh_from_db()
    assert application.assigned_manager == manager
    notification = Notification.objects.get(recipient=manager)
    assert notification.notification_type == Notification.NotificationType.ASSIGNMENT

    # Repeating the same assignment is a no-op.
    assign_manager(application.pk, manager.pk, admin)
    assert Notification.objects.filter(recipient=manager).count() == 1


@pytest.mark.django_db
def test_assign_manager_requires_admin(profile_factory, application_factory):
    manager = profile_factory(role=UserRole.MANAGER)
    application = application_factory()

    with pytest.raises(PermissionDenied):
        assign_manager(application.pk, manager.pk, manager)


@pytest.mark.django_db
def test_assign_manager_validates_target(profile_factory, application_factory):
    admin = profile_factory(role=UserRole.ADMIN)
    partner = profile_factory(role=UserRole.PARTNER)
    retired = profile_factory(role=UserRole.MANAGER, is_active=False)
    application = application_factory()

    with pytest.raises(ValidationError):
        assign_manager(application.pk, partner.pk, admin)
    with pytest.raises(ValidationError):
        assign_manager(application.pk, retired.pk, admin)
    with pytest.raises(NotFound):
        assign_manager(application.pk, 999999, admin)


@pytest.mark.django_db
def test_created_by_role_is_immutable(application_factory):
    application = application_factory()
    application.created_by_role = UserRole.ADMIN.value

    with pytest.raises(ValueError):
        application.save()


@pytest.mark.django_db
def test_mark_notification_read_only_for_recipient(profile_factory, application_factory):
    owner = profile_factory(role=UserRole.USER)
    other = profile_factory(role=UserRole.USER)
    application = application_factory(created_by=owner)
    notification = Notification.objects.create(
        recipient=owner,
        application=application,
        message="Update",
        notification_type=Notification.NotificationType.STATUS_CHANGE,
    )

    with pytest.raises(PermissionDenied):
        mark_notification_read(notification.pk, other)

    result = mark_notification_read(notification.pk, owner)
    assert result.is_read
    assert result.read_at is not None

    with pytest.raises(NotFound):
        mark_notification_read(123456, owner)
