import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.users.constants import ROLE_CHOICES, UserRole

from .statuses import STATUS_VALUES, ApplicationStatus


class Customer(models.Model):
    """The company and contact an application is about."""

    class LicenseType(models.TextChoices):
        MAINLAND = "mainland", "Mainland"
        FREEZONE = "freezone", "Free Zone"
        OFFSHORE = "offshore", "Offshore"

    class LeadSource(models.TextChoices):
        WEBSITE = "website", "Website"
        REFERRAL = "referral", "Referral"
        SOCIAL_MEDIA = "social_media", "Social media"
        PARTNER = "partner", "Partner"
        MANAGER = "manager", "Manager"
        OTHER = "other", "Other"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Contact
    name = models.CharField(max_length=255)
    email = models.EmailField()
    mobile = models.CharField(max_length=32)

    # Company
    company = models.CharField(max_length=255)
    license_type = models.CharField(max_length=16, choices=LicenseType.choices)
    jurisdiction = models.CharField(max_length=100, blank=True)
    annual_turnover = models.DecimalField(
        max_digits=16, decimal_places=2, blank=True, null=True
    )
    lead_source = models.CharField(
        max_length=32, choices=LeadSource.choices, default=LeadSource.WEBSITE
    )
    preferred_bank = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("company", "name")

    def __str__(self):
        return f"{self.company} ({self.name})"


class ApplicationQuerySet(models.QuerySet):
    def created_by_role(self, role):
        return self.filter(created_by_role=UserRole(role).value)


class Application(models.Model):
    """A customer's request to open a corporate bank account."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="applications",
    )
    status = models.CharField(
        max_length=20,
        choices=ApplicationStatus.choices,
        default=ApplicationStatus.DRAFT,
        db_index=True,
    )
    created_by = models.ForeignKey(
        "users.Profile",
        on_delete=models.PROTECT,
        related_name="created_applications",
    )
    created_by_role = models.CharField(max_length=16, choices=ROLE_CHOICES, db_index=True)
    assigned_manager = models.ForeignKey(
        "users.Profile",
        on_delete=models.SET_NULL,
        related_name="assigned_applications",
        blank=True,
        null=True,
        limit_choices_to={"role": UserRole.MANAGER.value, "is_active": True},
    )
    application_data = models.JSONField(blank=True, default=dict)
    version = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(default=timezone.now)

    objects = ApplicationQuerySet.as_manager()

    class Meta:
        ordering = ("-created_at",)
        constraints = [
            models.CheckConstraint(
                condition=models.Q(status__in=STATUS_VALUES),
                name="applications_status_valid",
            ),
        ]

    def __str__(self):
        return f"{self.customer.company} ({self.status})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            stored_role = (
                Application.objects.filter(pk=self.pk)
                .values_list("created_by_role", flat=True)
                .first()
            )
            if stored_role is not None and stored_role != self.created_by_role:
                raise ValueError("created_by_role cannot change after creation.")
        super().save(*args, **kwargs)

    def participants(self, exclude_id=None) -> list:
        """Owner and assigned manager, deduplicated, minus ``exclude_id``."""

        participants = []
        for profile in (self.created_by, self.assigned_manager):
            if profile is None or profile.pk == exclude_id:
                continue
            if any(existing.pk == profile.pk for existing in participants):
                continue
            participants.append(profile)
        return participants


class StatusChange(models.Model):
    """Immutable audit record written for every status mutation."""

    application = models.ForeignKey(
        Application,
        on_delete=models.CASCADE,
        related_name="status_changes",
    )
    previous_status = models.CharField(max_length=20, choices=ApplicationStatus.choices)
    new_status = models.CharField(max_length=20, choices=ApplicationStatus.choices)
    changed_by = models.ForeignKey(
        "users.Profile",
        on_delete=models.PROTECT,
        related_name="status_changes",
    )
    changed_by_role = models.CharField(max_length=16, choices=ROLE_CHOICES)
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self):  # pragma: no cover - human readable representation
        return f"{self.application_id}: {self.previous_status} -> {self.new_status}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Status changes are append-only.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Status changes are append-only.")

    def audience(self) -> list:
        """Return the owner and assigned manager, without the actor."""

        return self.application.participants(exclude_id=self.changed_by_id)


class ApplicationMessage(models.Model):
    """A message on an application's conversation thread."""

    class Kind(models.TextChoices):
        MESSAGE = "message", "Message"
        STATUS_CHANGE = "status_change", "Status change"

    application = models.ForeignKey(
        Application,
        on_delete=models.CASCADE,
        related_name="messages",
    )
    sender = models.ForeignKey(
        "users.Profile",
        on_delete=models.PROTECT,
        related_name="sent_messages",
    )
    sender_role = models.CharField(max_length=16, choices=ROLE_CHOICES)
    kind = models.CharField(max_length=16, choices=Kind.choices, default=Kind.MESSAGE)
    status_change = models.OneToOneField(
        StatusChange,
        on_delete=models.SET_NULL,
        related_name="thread_message",
        blank=True,
        null=True,
    )
    message = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ("created_at", "id")

    def __str__(self):  # pragma: no cover - human readable representation
        return f"{self.sender_role} on {self.application_id}: {self.message[:50]}"


class Notification(models.Model):
    """An in-app message delivered to a profile about an application."""

    class NotificationType(models.TextChoices):
        STATUS_CHANGE = "status_change", "Application status changed"
        ASSIGNMENT = "assignment", "Application assigned"
        MESSAGE = "message", "New message on application"

    recipient = models.ForeignKey(
        "users.Profile",
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    application = models.ForeignKey(
        Application,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    status_change = models.ForeignKey(
        StatusChange,
        on_delete=models.SET_NULL,
        related_name="notifications",
        blank=True,
        null=True,
    )
    message = models.TextField()
    notification_type = models.CharField(
        max_length=32,
        choices=NotificationType.choices,
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self):  # pragma: no cover - human readable representation
        return f"Notification to {self.recipient_id} - {self.notification_type}"

    def mark_read(self) -> None:
        if self.is_read:
            return
        self.is_read = True
        self.read_at = timezone.now()
        self.save(update_fields=["is_read", "read_at"])


class LogEntry(models.Model):
    """Persisted application log record for staff observability."""

    LEVEL_CHOICES = [
        ("DEBUG", "Debug"),
        ("INFO", "Info"),
        ("WARNING", "Warning"),
        ("ERROR", "Error"),
        ("CRITICAL", "Critical"),
    ]

    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)
    logger_name = models.CharField(max_length=255, db_index=True)
    level = models.CharField(max_length=16, choices=LEVEL_CHOICES)
    message = models.TextField()
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="portal_logs",
    )
    context = models.JSONField(blank=True, null=True)

    class Meta:
        ordering = ("-timestamp", "-id")

    def __str__(self) -> str:  # pragma: no cover - human readable representation
        return f"[{self.level}] {self.logger_name}: {self.message[:75]}"
