"""Serializers for API payloads surfaced through DRF."""

from __future__ import annotations

from rest_framework import serializers

from apps.applications import gate
from apps.applications.models import (
    Application,
    ApplicationMessage,
    Customer,
    LogEntry,
    Notification,
    StatusChange,
)
from apps.applications.statuses import display_status


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = (
            "id",
            "name",
            "email",
            "mobile",
            "company",
            "license_type",
            "jurisdiction",
            "annual_turnover",
            "lead_source",
            "preferred_bank",
            "notes",
        )
        read_only_fields = fields


class ApplicationSerializer(serializers.ModelSerializer):
    customer = CustomerSerializer(read_only=True)
    status_display = serializers.SerializerMethodField()
    created_by = serializers.IntegerField(source="created_by_id", read_only=True)
    assigned_manager = serializers.IntegerField(
        source="assigned_manager_id", read_only=True, allow_null=True
    )
    allowed_transitions = serializers.SerializerMethodField()

    class Meta:
        model = Application
        fields = (
            "id",
            "status",
            "status_display",
            "version",
            "customer",
            "created_by",
            "created_by_role",
            "assigned_manager",
            "application_data",
            "allowed_transitions",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields

    def get_status_display(self, obj: Application) -> str:
        return display_status(obj.status)

    def get_allowed_transitions(self, obj: Application) -> list[str]:
        profile = self.context.get("profile")
        return [status.value for status in gate.permitted_targets(profile, obj)]


class ApplicationCreateSerializer(serializers.Serializer):
    """Envelope for a new application; field rules live in the intake forms."""

    customer = serializers.DictField()
    application_data = serializers.DictField(required=False, default=dict)
    assigned_manager = serializers.IntegerField(required=False, allow_null=True)


class TransitionSerializer(serializers.Serializer):
    status = serializers.CharField()
    comment = serializers.CharField(required=False, allow_blank=True, default="")
    version = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class AssignManagerSerializer(serializers.Serializer):
    manager = serializers.IntegerField()


class StatusChangeSerializer(serializers.ModelSerializer):
    changed_by = serializers.IntegerField(source="changed_by_id", read_only=True)
    changed_by_name = serializers.CharField(source="changed_by.display_name", read_only=True)
    previous_status_display = serializers.SerializerMethodField()
    new_status_display = serializers.SerializerMethodField()

    class Meta:
        model = StatusChange
        fields = (
            "id",
            "previous_status",
            "previous_status_display",
            "new_status",
            "new_status_display",
            "changed_by",
            "changed_by_name",
            "changed_by_role",
            "comment",
            "created_at",
        )
        read_only_fields = fields

    def get_previous_status_display(self, obj: StatusChange) -> str:
        return display_status(obj.previous_status)

    def get_new_status_display(self, obj: StatusChange) -> str:
        return display_status(obj.new_status)


class ApplicationMessageSerializer(serializers.ModelSerializer):
    sender = serializers.IntegerField(source="sender_id", read_only=True)
    sender_name = serializers.CharField(source="sender.display_name", read_only=True)

    class Meta:
        model = ApplicationMessage
        fields = ("id", "sender", "sender_name", "sender_role", "kind", "message", "created_at")
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=4000)


class NotificationSerializer(serializers.ModelSerializer):
    application = serializers.UUIDField(source="application_id", read_only=True)

    class Meta:
        model = Notification
        fields = (
            "id",
            "application",
            "notification_type",
            "message",
            "is_read",
            "read_at",
            "created_at",
        )
        read_only_fields = fields


class DashboardQuerySerializer(serializers.Serializer):
    date_from = serializers.DateField(required=False, allow_null=True)
    date_to = serializers.DateField(required=False, allow_null=True)
    recent = serializers.IntegerField(required=False, min_value=0, max_value=100, default=10)

    def validate(self, attrs):
        date_from = attrs.get("date_from")
        date_to = attrs.get("date_to")
        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({"date_to": "End date must not be before the start date."})
        return attrs


class LogEntryUserSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField(allow_null=True)
    email = serializers.EmailField(allow_null=True, allow_blank=True)


class LogEntrySerializer(serializers.ModelSerializer):
    logger = serializers.CharField(source="logger_name", read_only=True)
    user = LogEntryUserSerializer(read_only=True, allow_null=True)

    class Meta:
        model = LogEntry
        fields = ("id", "timestamp", "logger", "level", "message", "user", "context")
        read_only_fields = fields
