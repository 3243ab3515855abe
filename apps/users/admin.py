"""Admin registrations for the users app."""

from django.contrib import admin

from apps.users.models import Profile


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("display_name", "user", "role", "is_active", "updated_at")
    list_filter = ("role", "is_active")
    search_fields = ("name", "user__username", "user__email")
    readonly_fields = ("created_at", "updated_at")

    def get_readonly_fields(self, request, obj=None):
        fields = list(super().get_readonly_fields(request, obj))
        if obj is not None:
            # A profile keeps the role it was created with.
            fields.append("role")
        return fields
