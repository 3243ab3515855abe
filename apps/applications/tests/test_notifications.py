"""Tests for the notification hook, status emails and the staff websocket feed."""

from __future__ import annotations

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser

from apps.applications.consumers import StaffApplicationConsumer
from apps.applications.emails import send_status_change_email, status_change_recipients
from apps.applications.exceptions import DeliveryFailure
from apps.applications.models import ApplicationMessage, Notification, StatusChange
from apps.applications.notifications import (
    STAFF_GROUP_NAME,
    build_status_message,
    notify_status_change,
)
from apps.applications.services.transitions import transition
from apps.applications.statuses import ApplicationStatus as S
from apps.users.constants import UserRole


def _record_change(application, actor, previous, new, comment=""):
    return StatusChange.objects.create(
        application=application,
        previous_status=previous,
        new_status=new,
        changed_by=actor,
        changed_by_role=actor.role,
        comment=comment,
    )


@pytest.mark.django_db
def test_audience_excludes_actor_and_duplicates(profile_factory, application_factory):
    manager = profile_factory(role=UserRole.MANAGER)
    owner = profile_factory(role=UserRole.USER)
    application = application_factory(created_by=owner, status=S.SUBMIT, assigned_manager=manager)

    by_manager = _record_change(application, manager, S.SUBMIT, S.NEED_MORE_INFO)
    own_application = application_factory(created_by=manager, assigned_manager=manager)
    by_admin = _record_change(
        own_application, profile_factory(role=UserRole.ADMIN), S.DRAFT, S.SUBMIT
    )

    assert by_manager.audience() == [owner]
    assert by_admin.audience() == [manager]


@pytest.mark.django_db
def test_hook_creates_in_app_notifications(profile_factory, application_factory, mailoutbox):
    manager = profile_factory(role=UserRole.MANAGER)
    owner = profile_factory(role=UserRole.PARTNER)
    application = application_factory(created_by=owner, status=S.SUBMIT, assigned_manager=manager)
    change = _record_change(application, manager, S.SUBMIT, S.NEED_MORE_INFO, "Need bank statements")

    notify_status_change(change)

    notification = Notification.objects.get()
    assert notification.recipient == owner
    assert notification.status_change == change
    assert "Need More Info" in notification.message
    assert "Need bank statements" in notification.message
    assert len(mailoutbox) == 1
    assert mailoutbox[0].to == [owner.email]
    assert "provide the requested information" in mailoutbox[0].body


@pytest.mark.django_db
def test_hook_posts_status_change_to_message_thread(profile_factory, application_factory):
    manager = profile_factory(role=UserRole.MANAGER)
    application = application_factory(status=S.SUBMIT, assigned_manager=manager)
    change = _record_change(application, manager, S.SUBMIT, S.RETURN, "Passport copy is blurred")

    notify_status_change(change)

    posted = ApplicationMessage.objects.get(application=application)
    assert posted.kind == ApplicationMessage.Kind.STATUS_CHANGE
    assert posted.status_change == change
    assert posted.sender == manager
    assert posted.sender_role == UserRole.MANAGER.value
    assert posted.message == "Application status changed to: Return\nPassport copy is blurred"


@pytest.mark.django_db
def test_submission_sends_customer_receipt(profile_factory, application_factory, customer_factory, mailoutbox):
    manager = profile_factory(role=UserRole.MANAGER)
    user = profile_factory(role=UserRole.USER)
    customer = customer_factory(email="owner@acme.example")
    application = application_factory(created_by=user, customer=customer, assigned_manager=manager)

    transition(application.pk, "submit", user)

    subjects = {message.subject: message.to for message in mailoutbox}
    assert subjects["Bank Account Application Received - Thank You!"] == ["owner@acme.example"]
    status_subject = f"Application update: {customer.company} is now Submit"
    assert subjects[status_subject] == [manager.email]
    assert mailoutbox[0].from_email == "applications@bank-portal.test"


@pytest.mark.django_db
def test_hook_wraps_failures_in_delivery_failure(profile_factory, application_factory, mocker):
    admin = profile_factory(role=UserRole.ADMIN)
    application = application_factory(status=S.SUBMIT)
    change = _record_change(application, admin, S.SUBMIT, S.COMPLETED)
    mocker.patch(
        "apps.applications.notifications.send_status_change_email_task.delay",
        side_effect=ConnectionError("broker down"),
    )

    with pytest.raises(DeliveryFailure):
        notify_status_change(change)


@pytest.mark.django_db
def test_email_task_swallows_smtp_errors(profile_factory, application_factory, mocker):
    admin = profile_factory(role=UserRole.ADMIN)
    application = application_factory(status=S.SUBMIT)
    change = _record_change(application, admin, S.SUBMIT, S.REJECTED)
    mocker.patch(
        "apps.applications.tasks.send_status_change_email",
        side_effect=OSError("smtp unavailable"),
    )

    notify_status_change(change)

    assert Notification.objects.filter(status_change=change).count() == 1


@pytest.mark.django_db
def test_status_email_skips_when_nobody_to_tell(profile_factory, application_factory, mailoutbox):
    owner = profile_factory(role=UserRole.USER, email="")
    application = application_factory(created_by=owner)
    change = _record_change(application, owner, S.DRAFT, S.SUBMIT)

    assert status_change_recipients(change) == []
    assert send_status_change_email(change) == 0
    assert mailoutbox == []


@pytest.mark.django_db
def test_status_message_mentions_company_and_labels(profile_factory, application_factory, customer_factory):
    admin = profile_factory(role=UserRole.ADMIN)
    application = application_factory(
        customer=customer_factory(company="Falcon Logistics"), status=S.COMPLETED
    )
    change = _record_change(application, admin, S.COMPLETED, S.PAID)

    assert build_status_message(change) == (
        "Falcon Logistics: status changed from Completed to Paid."
    )


@pytest.mark.django_db
def test_status_changes_are_append_only(profile_factory, application_factory):
    admin = profile_factory(role=UserRole.ADMIN)
    change = _record_change(application_factory(), admin, S.DRAFT, S.SUBMIT)

    change.comment = "edited"
    with pytest.raises(ValueError):
        change.save()
    with pytest.raises(ValueError):
        change.delete()


@pytest.mark.django_db(transaction=True)
def test_staff_socket_rejects_anonymous_users():
    async def scenario():
        communicator = WebsocketCommunicator(
            StaffApplicationConsumer.as_asgi(), "/ws/staff/applications/"
        )
        communicator.scope["user"] = AnonymousUser()
        connected, _ = await communicator.connect()
        await communicator.disconnect()
        return connected

    assert async_to_sync(scenario)() is False


@pytest.mark.django_db(transaction=True)
def test_staff_socket_relays_status_changes(mocker):
    mocker.patch.object(StaffApplicationConsumer, "_user_is_staff", mocker.AsyncMock(return_value=True))
    mocker.patch.object(
        StaffApplicationConsumer, "_status_counts", mocker.AsyncMock(return_value={"submit": 1})
    )

    async def scenario():
        communicator = WebsocketCommunicator(
            StaffApplicationConsumer.as_asgi(), "/ws/staff/applications/"
        )
        connected, _ = await communicator.connect()
        assert connected
        init = await communicator.receive_json_from()

        await get_channel_layer().group_send(
            STAFF_GROUP_NAME,
            {"type": "application_status_changed", "payload": {"application": {"id": "abc"}}},
        )
        update = await communicator.receive_json_from()
        await communicator.disconnect()
        return init, update

    init, update = async_to_sync(scenario)()

    assert init == {"type": "staff.init", "payload": {"status_counts": {"submit": 1}}}
    assert update["type"] == "staff.status_changed"
    assert update["payload"]["application"]["id"] == "abc"
