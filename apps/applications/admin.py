"""Admin configuration for applications and their audit trail."""
from __future__ import annotations

from django.contrib import admin

from .models import Application, ApplicationMessage, Customer, LogEntry, Notification, StatusChange


class StatusChangeInline(admin.TabularInline):
    model = StatusChange
    extra = 0
    can_delete = False
    fields = ("created_at", "previous_status", "new_status", "changed_by", "changed_by_role", "comment")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


class ApplicationMessageInline(admin.TabularInline):
    model = ApplicationMessage
    extra = 0
    can_delete = False
    fields = ("created_at", "sender", "sender_role", "kind", "message")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("company", "name", "email", "license_type", "lead_source", "created_at")
    list_filter = ("license_type", "lead_source")
    search_fields = ("company", "name", "email", "mobile")


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = ("customer", "status", "created_by", "created_by_role", "assigned_manager", "updated_at")
    list_filter = ("status", "created_by_role")
    search_fields = ("customer__company", "customer__name", "customer__email")
    # Status only moves through the transition executor.
    readonly_fields = ("status", "created_by", "created_by_role", "version", "created_at", "updated_at")
    inlines = [StatusChangeInline, ApplicationMessageInline]


@admin.register(StatusChange)
class StatusChangeAdmin(admin.ModelAdmin):
    list_display = ("application", "previous_status", "new_status", "changed_by", "changed_by_role", "created_at")
    list_filter = ("new_status", "changed_by_role")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("recipient", "notification_type", "is_read", "created_at")
    list_filter = ("notification_type", "is_read")


@admin.register(LogEntry)
class LogEntryAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "level", "logger_name", "message")
    list_filter = ("level", "logger_name")
    search_fields = ("message",)
