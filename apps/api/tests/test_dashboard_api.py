"""Tests for the dashboard, notification and health endpoints."""

from __future__ import annotations

import pytest
from django.db.utils import OperationalError
from django.urls import reverse

from apps.applications.models import Notification
from apps.applications.statuses import ApplicationStatus as S
from apps.users.constants import UserRole


@pytest.mark.django_db
def test_dashboard_returns_role_scoped_counts(api_client, profile_factory, application_factory):
    manager = profile_factory(role=UserRole.MANAGER)
    application_factory(assigned_manager=manager, status=S.SUBMIT)
    application_factory(created_by=manager)
    application_factory(status=S.PAID)
    api_client.force_authenticate(manager.user)

    response = api_client.get(reverse("api:dashboard"))

    assert response.status_code == 200
    payload = response.json()
    assert payload["role"] == "manager"
    assert payload["total"] == 2
    assert payload["status_counts"]["submit"] == 1
    assert payload["status_counts"]["paid"] == 0
    assert set(payload["slices"]) == {"assigned", "mine"}


@pytest.mark.django_db
def test_dashboard_rejects_inverted_period(api_client, profile_factory):
    admin = profile_factory(role=UserRole.ADMIN)
    api_client.force_authenticate(admin.user)

    response = api_client.get(
        reverse("api:dashboard"), {"date_from": "2024-05-01", "date_to": "2024-04-01"}
    )

    assert response.status_code == 400
    assert "date_to" in response.json()


@pytest.mark.django_db
def test_notifications_list_and_mark_read(api_client, profile_factory, application_factory):
    owner = profile_factory(role=UserRole.USER)
    admin = profile_factory(role=UserRole.ADMIN)
    application = application_factory(created_by=owner, status=S.SUBMIT)
    api_client.force_authenticate(admin.user)
    api_client.post(
        reverse("api:application-transition", kwargs={"pk": application.pk}),
        {"status": "return", "comment": "Wrong licence number"},
        format="json",
    )

    api_client.force_authenticate(owner.user)
    listing = api_client.get(reverse("api:notification-list"), {"unread": "1"})

    assert listing.status_code == 200
    results = listing.json()["results"]
    assert len(results) == 1
    assert "Wrong licence number" in results[0]["message"]

    notification_id = results[0]["id"]
    read = api_client.post(reverse("api:notification-read", kwargs={"pk": notification_id}))
    assert read.status_code == 200
    assert read.json()["is_read"] is True
    assert Notification.objects.get(pk=notification_id).read_at is not None

    api_client.force_authenticate(admin.user)
    foreign = api_client.post(reverse("api:notification-read", kwargs={"pk": notification_id}))
    assert foreign.status_code == 403


@pytest.mark.django_db
def test_health_summary_reports_counts(client, application_factory):
    application_factory(status=S.SUBMIT)

    summary = client.get(reverse("api:health-summary"))

    assert summary.status_code == 200
    assert summary.json()["status"] == "ok"
    assert summary.json()["database"] == "ok"
    assert summary.json()["status_counts"]["submit"] == 1


@pytest.mark.django_db
def test_health_summary_returns_503_when_database_fails(client, mocker):
    mocker.patch("apps.api.views.build_status_counts", side_effect=OperationalError("down"))

    summary = client.get(reverse("api:health-summary"))

    assert summary.status_code == 503
    assert summary.json()["database"] == "unavailable"
    assert "status_counts" not in summary.json()
