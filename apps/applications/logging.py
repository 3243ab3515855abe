"""Logging handler that stores workflow events as ``LogEntry`` rows.

Records carry ``extra={"context": {...}}`` with an ``action`` key such as
``application.transition``; any other non-standard attribute is folded into
the stored context. The acting account comes from ``profile``, ``user`` or
``user_id``, checked in that order.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from django.contrib.auth import get_user_model
from django.db import models

ACTOR_ATTRS = frozenset({"profile", "user", "user_id"})
SKIPPED_ATTRS = (
    frozenset(logging.makeLogRecord({}).__dict__)
    | ACTOR_ATTRS
    | {"message", "asctime", "context"}
)


def to_json_value(value: Any) -> Any:
    """Reduce ``value`` to something a ``JSONField`` accepts."""

    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Mapping):
        return {str(key): to_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_value(item) for item in value]
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, models.Model):
        return to_json_value(value.pk)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def record_context(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    context: Dict[str, Any] = {}
    provided = getattr(record, "context", None)
    if isinstance(provided, Mapping):
        context.update(to_json_value(provided))

    for key, value in vars(record).items():
        if key in SKIPPED_ATTRS or key.startswith("_"):
            continue
        context[key] = to_json_value(value)

    if record.exc_info and record.exc_info[0] is not None:
        context.setdefault("exception", record.exc_info[0].__name__)

    return context or None


def record_user(record: logging.LogRecord):
    """Return the auth user behind the record's actor, if any."""

    profile = getattr(record, "profile", None)
    if profile is not None and getattr(profile, "user_id", None):
        return profile.user

    user = getattr(record, "user", None)
    if user is not None and getattr(user, "pk", None):
        return user

    user_id = getattr(record, "user_id", None)
    if not user_id:
        return None
    return get_user_model()._default_manager.filter(pk=user_id).first()


class DatabaseLogHandler(logging.Handler):
    """Persist workflow records so administrators can read them from ``/api/logs/``."""

    def emit(self, record: logging.LogRecord) -> None:
        from .models import LogEntry

        try:
            LogEntry.objects.create(
                logger_name=record.name,
                level=record.levelname.upper(),
                message=record.getMessage(),
                user=record_user(record),
                context=record_context(record),
            )
        except Exception:
            self.handleError(record)


__all__ = ["DatabaseLogHandler", "record_context", "record_user", "to_json_value"]
