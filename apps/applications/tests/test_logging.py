"""Tests for the database log handler."""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal

import pytest

from apps.applications.logging import DatabaseLogHandler
from apps.applications.models import LogEntry
from apps.users.constants import UserRole


@pytest.mark.django_db
def test_handler_persists_context_and_user(profile_factory):
    profile = profile_factory(role=UserRole.MANAGER)
    logger = logging.getLogger("portal.tests.handler")
    handler = DatabaseLogHandler()
    logger.addHandler(handler)
    application_id = uuid.uuid4()
    try:
        logger.warning(
            "Application %s needs attention",
            application_id,
            extra={
                "user": profile.user,
                "context": {"action": "application.flagged", "application_id": application_id},
                "manager": profile,
            },
        )
    finally:
        logger.removeHandler(handler)

    entry = LogEntry.objects.get(logger_name="portal.tests.handler")
    assert entry.level == "WARNING"
    assert entry.message == f"Application {application_id} needs attention"
    assert entry.user == profile.user
    assert entry.context == {
        "action": "application.flagged",
        "application_id": str(application_id),
        "manager": profile.pk,
    }


@pytest.mark.django_db
def test_handler_records_exception_type():
    logger = logging.getLogger("portal.tests.errors")
    handler = DatabaseLogHandler()
    logger.addHandler(handler)
    try:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logger.exception("Task failed", extra={"user_id": 987654})
    finally:
        logger.removeHandler(handler)

    entry = LogEntry.objects.get(logger_name="portal.tests.errors")
    assert entry.level == "ERROR"
    assert entry.user is None
    assert entry.context == {"exception": "RuntimeError"}


@pytest.mark.django_db
def test_handler_resolves_user_from_profile_and_stores_amounts(profile_factory):
    profile = profile_factory(role=UserRole.PARTNER)
    logger = logging.getLogger("portal.tests.profile")
    handler = DatabaseLogHandler()
    logger.addHandler(handler)
    try:
        logger.info(
            "Draft created",
            extra={
                "profile": profile,
                "context": {"action": "application.created", "amount": Decimal("150000.50")},
            },
        )
    finally:
        logger.removeHandler(handler)

    entry = LogEntry.objects.get(logger_name="portal.tests.profile")
    assert entry.user == profile.user
    assert entry.context == {"action": "application.created", "amount": "150000.50"}
