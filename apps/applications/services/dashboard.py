"""Role-scoped status counts for dashboards."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Mapping, Optional

from django.db.models import Count, QuerySet
from django.utils import timezone

from apps.users.constants import SUBMITTER_ROLES, UserRole
from apps.users.models import Profile

from .. import gate
from ..models import Application
from ..statuses import ApplicationStatus, coerce_status, display_status

UNKNOWN_BUCKET = "unknown"

StatusCounts = Dict[str, int]


def empty_counts() -> StatusCounts:
    counts = {status.value: 0 for status in ApplicationStatus}
    counts[UNKNOWN_BUCKET] = 0
    return counts


def _status_of(item: Any):
    if isinstance(item, str) or item is None:
        return item
    if isinstance(item, Mapping):
        return item.get("status")
    return getattr(item, "status", None)


def _bucket_for(raw_status) -> str:
    status = coerce_status(raw_status)
    return status.value if status is not None else UNKNOWN_BUCKET


def tally_statuses(items: Iterable[Any]) -> StatusCounts:
    """Count ``items`` per canonical status.

    Items may be applications, mappings with a ``status`` key or raw status
    strings. Legacy spellings are folded into their canonical status and
    anything unrecognised lands in the ``unknown`` bucket.
    """

    counts = empty_counts()
    for item in items:
        counts[_bucket_for(_status_of(item))] += 1
    return counts


def tally_by_role(items: Iterable[Any]) -> Dict[str, StatusCounts]:
    """Group status counts by the role that created each item."""

    grouped: Dict[str, StatusCounts] = defaultdict(empty_counts)
    for item in items:
        if isinstance(item, Mapping):
            role = item.get("created_by_role")
        else:
            role = getattr(item, "created_by_role", None)
        grouped[str(role or UNKNOWN_BUCKET)][_bucket_for(_status_of(item))] += 1
    return dict(grouped)


def total(counts: StatusCounts) -> int:
    return sum(counts.values())


def build_status_counts(queryset: QuerySet) -> StatusCounts:
    """Aggregate per-status counts in the database."""

    counts = empty_counts()
    rows = queryset.order_by().values("status").annotate(total=Count("id"))
    for row in rows:
        counts[_bucket_for(row["status"])] += row["total"] or 0
    return counts


def _as_datetime(value, *, end_of_day: bool = False):
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        moment = datetime.combine(value, time.max if end_of_day else time.min)
        return timezone.make_aware(moment)
    return value


def filter_by_period(
    queryset: QuerySet,
    date_from: Optional[date | datetime] = None,
    date_to: Optional[date | datetime] = None,
) -> QuerySet:
    start = _as_datetime(date_from)
    end = _as_datetime(date_to, end_of_day=True)
    if start is not None:
        queryset = queryset.filter(created_at__gte=start)
    if end is not None:
        queryset = queryset.filter(created_at__lte=end)
    return queryset


def build_recent_applications(queryset: QuerySet, limit: int = 10) -> List[dict[str, Any]]:
    """Return the most recently created applications as dashboard rows."""

    recent = queryset.select_related("customer").order_by("-created_at")[:limit]
    return [
        {
            "id": str(application.pk),
            "company": application.customer.company,
            "customer_name": application.customer.name,
            "status": application.status,
            "status_display": display_status(application.status),
            "created_by_role": application.created_by_role,
            "created_at": application.created_at.isoformat() if application.created_at else None,
            "updated_at": application.updated_at.isoformat() if application.updated_at else None,
        }
        for application in recent
    ]


def _slices_for(profile: Profile, queryset: QuerySet) -> Dict[str, QuerySet]:
    if profile.role == UserRole.ADMIN.value:
        return {role.value: queryset.created_by_role(role) for role in SUBMITTER_ROLES}
    if profile.role == UserRole.MANAGER.value:
        return {
            "assigned": queryset.filter(assigned_manager=profile).exclude(created_by=profile),
            "mine": queryset.filter(created_by=profile),
        }
    return {"mine": queryset.filter(created_by=profile)}


def build_dashboard(
    profile: Optional[Profile],
    *,
    date_from: Optional[date | datetime] = None,
    date_to: Optional[date | datetime] = None,
    recent_limit: int = 10,
) -> dict[str, Any]:
    """Return the dashboard payload for ``profile``.

    Admins get a breakdown by submitter role, managers get their assigned
    and own slices, partners and users get only their own applications.
    """

    visible = gate.visible_applications(profile, Application.objects.all())
    visible = filter_by_period(visible, date_from, date_to)

    status_counts = build_status_counts(visible)
    slices = {}
    if profile is not None and profile.is_active:
        slices = {
            name: build_status_counts(subset)
            for name, subset in _slices_for(profile, visible).items()
        }

    return {
        "role": profile.role if profile is not None else None,
        "total": total(status_counts),
        "pending_review": status_counts[ApplicationStatus.SUBMIT.value],
        "status_counts": status_counts,
        "slices": slices,
        "recent_applications": build_recent_applications(visible, limit=recent_limit),
    }


__all__ = [
    "UNKNOWN_BUCKET",
    "build_dashboard",
    "build_recent_applications",
    "build_status_counts",
    "empty_counts",
    "filter_by_period",
    "tally_by_role",
    "tally_statuses",
    "total",
]
