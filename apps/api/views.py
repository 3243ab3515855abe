"""DRF views providing the portal's JSON API."""

from __future__ import annotations

from django.db import connections
from django.db.utils import OperationalError
from django.utils import timezone
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.permissions import HasActiveProfile, IsAdminRole
from apps.api.serializers import (
    ApplicationCreateSerializer,
    ApplicationMessageSerializer,
    ApplicationSerializer,
    AssignManagerSerializer,
    DashboardQuerySerializer,
    LogEntrySerializer,
    MessageCreateSerializer,
    NotificationSerializer,
    StatusChangeSerializer,
    TransitionSerializer,
)
from apps.applications import gate
from apps.applications.exceptions import (
    InvalidTransition,
    NotFound,
    PermissionDenied,
    StaleApplication,
    ValidationError,
    WorkflowError,
)
from apps.applications.models import Application, LogEntry, Notification
from apps.applications.services.dashboard import build_dashboard, build_status_counts
from apps.applications.services.intake import (
    assign_manager,
    create_application,
    mark_notification_read,
)
from apps.applications.services.messages import list_messages, post_message
from apps.applications.services.transitions import load_application, transition
from apps.applications.statuses import normalise_status
from apps.users.models import get_profile

WORKFLOW_ERROR_STATUS = {
    NotFound: status.HTTP_404_NOT_FOUND,
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    InvalidTransition: status.HTTP_409_CONFLICT,
    StaleApplication: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_400_BAD_REQUEST,
}


def workflow_error_response(exc: WorkflowError) -> Response:
    """Translate a workflow error into ``{"detail", "code"}`` with its HTTP status."""

    http_status = status.HTTP_400_BAD_REQUEST
    for error_class, mapped_status in WORKFLOW_ERROR_STATUS.items():
        if isinstance(exc, error_class):
            http_status = mapped_status
            break

    payload = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, ValidationError) and exc.errors:
        payload["errors"] = exc.errors
    return Response(payload, status=http_status)


class WorkflowAPIView(APIView):
    """Base view: active profile required, workflow errors rendered uniformly."""

    permission_classes = [permissions.IsAuthenticated, HasActiveProfile]

    def handle_exception(self, exc):  # type: ignore[override]
        if isinstance(exc, WorkflowError):
            return workflow_error_response(exc)

        response = super().handle_exception(exc)
        if isinstance(response.data, dict) and "detail" in response.data:
            response.data.setdefault("code", getattr(exc, "default_code", "error"))
        return response

    @property
    def profile(self):
        return get_profile(self.request.user)

    def get_serializer_context(self):
        return {"request": self.request, "profile": self.profile, "view": self}


class ApplicationListView(WorkflowAPIView, generics.ListAPIView):
    """List the caller's applications or create a new draft."""

    serializer_class = ApplicationSerializer

    def get_queryset(self):
        queryset = gate.visible_applications(
            self.profile,
            Application.objects.select_related("customer", "created_by", "assigned_manager"),
        )
        raw_status = self.request.query_params.get("status")
        if raw_status:
            queryset = queryset.filter(status=normalise_status(raw_status).value)
        return queryset.order_by("-created_at")

    def post(self, request, *args, **kwargs):
        serializer = ApplicationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        application = create_application(
            self.profile,
            serializer.validated_data["customer"],
            serializer.validated_data.get("application_data") or {},
            assigned_manager_id=serializer.validated_data.get("assigned_manager"),
        )
        output = ApplicationSerializer(application, context=self.get_serializer_context())
        return Response(output.data, status=status.HTTP_201_CREATED)


class ApplicationDetailView(WorkflowAPIView):
    def get(self, request, pk, *args, **kwargs):
        application = load_application(pk)
        gate.ensure_in_scope(self.profile, application)
        return Response(
            ApplicationSerializer(application, context=self.get_serializer_context()).data
        )


class ApplicationTransitionView(WorkflowAPIView):
    """Move an application to a new status through the transition executor."""

    def post(self, request, pk, *args, **kwargs):
        serializer = TransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        application = transition(
            pk,
            serializer.validated_data["status"],
            self.profile,
            serializer.validated_data.get("comment"),
            expected_version=serializer.validated_data.get("version"),
        )
        return Response(
            ApplicationSerializer(application, context=self.get_serializer_context()).data
        )


class ApplicationHistoryView(WorkflowAPIView):
    def get(self, request, pk, *args, **kwargs):
        application = load_application(pk)
        gate.ensure_in_scope(self.profile, application)
        changes = application.status_changes.select_related("changed_by__user")
        return Response(StatusChangeSerializer(changes, many=True).data)


class ApplicationMessagesView(WorkflowAPIView):
    """Read or add to an application's message thread."""

    def get(self, request, pk, *args, **kwargs):
        messages = list_messages(pk, self.profile)
        return Response(ApplicationMessageSerializer(messages, many=True).data)

    def post(self, request, pk, *args, **kwargs):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        message = post_message(pk, self.profile, serializer.validated_data["message"])
        return Response(
            ApplicationMessageSerializer(message).data, status=status.HTTP_201_CREATED
        )


class AssignManagerView(WorkflowAPIView):
    def post(self, request, pk, *args, **kwargs):
        serializer = AssignManagerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        application = assign_manager(pk, serializer.validated_data["manager"], self.profile)
        return Response(
            ApplicationSerializer(application, context=self.get_serializer_context()).data
        )


class DashboardView(WorkflowAPIView):
    """Role-scoped status counts, slices and recent applications."""

    def get(self, request, *args, **kwargs):
        query = DashboardQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        payload = build_dashboard(
            self.profile,
            date_from=query.validated_data.get("date_from"),
            date_to=query.validated_data.get("date_to"),
            recent_limit=query.validated_data["recent"],
        )
        return Response(payload)


class NotificationListView(WorkflowAPIView, generics.ListAPIView):
    serializer_class = NotificationSerializer

    def get_queryset(self):
        queryset = Notification.objects.filter(recipient=self.profile)
        if self.request.query_params.get("unread") in {"1", "true", "yes"}:
            queryset = queryset.filter(is_read=False)
        return queryset


class NotificationReadView(WorkflowAPIView):
    def post(self, request, pk, *args, **kwargs):
        notification = mark_notification_read(pk, self.profile)
        return Response(NotificationSerializer(notification).data)


class LogEntryListView(WorkflowAPIView, generics.ListAPIView):
    """Expose persisted workflow log entries to administrators."""

    permission_classes = [permissions.IsAuthenticated, IsAdminRole]
    serializer_class = LogEntrySerializer

    def get_queryset(self):
        queryset = LogEntry.objects.select_related("user")
        params = self.request.query_params

        level = (params.get("level") or "").strip().upper()
        if level:
            queryset = queryset.filter(level=level)

        logger_name = (params.get("logger") or "").strip()
        if logger_name:
            queryset = queryset.filter(logger_name__icontains=logger_name)

        action = (params.get("action") or "").strip()
        if action:
            queryset = queryset.filter(context__action=action)

        application_id = (params.get("application") or "").strip()
        if application_id:
            queryset = queryset.filter(context__application_id=application_id)

        search_query = (params.get("search") or "").strip()
        if search_query:
            queryset = queryset.filter(message__icontains=search_query)

        return queryset.order_by("-timestamp", "-id")


class HealthSummaryView(APIView):
    """Uptime check for load balancers and monitors.

    Answers 200 with current status counts when the database responds and
    503 when it does not.
    """

    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):  # type: ignore[override]
        payload = {
            "status": "ok",
            "timestamp": timezone.now().isoformat(),
            "database": "ok",
        }
        try:
            with connections["default"].cursor() as cursor:
                cursor.execute("SELECT 1")
            payload["status_counts"] = build_status_counts(Application.objects.all())
        except OperationalError:
            payload["status"] = "degraded"
            payload["database"] = "unavailable"
            return Response(payload, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        return Response(payload)
