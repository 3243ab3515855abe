from django.conf import settings
from django.core.mail import send_mail
from django.utils.translation import gettext_lazy as _

from .statuses import ApplicationStatus, display_status


def _default_from_email() -> str:
    return (
        getattr(settings, "PORTAL_NOTIFICATION_FROM_EMAIL", None)
        or getattr(settings, "DEFAULT_FROM_EMAIL", None)
        or "no-reply@example.com"
    )


def status_change_recipients(change) -> list[str]:
    """Return the email addresses told about ``change``, excluding the actor."""

    recipients: list[str] = []
    for profile in change.audience():
        email = profile.email
        if email and email not in recipients:
            recipients.append(email)
    return recipients


def send_status_change_email(change) -> int:
    """Email the owner and assigned manager about a status change."""

    recipients = status_change_recipients(change)
    if not recipients:
        return 0

    application = change.application
    company = application.customer.company
    previous_label = display_status(change.previous_status)
    new_label = display_status(change.new_status)

    subject = _("Application update: {company} is now {status}").format(
        company=company, status=new_label
    )
    message_lines = [
        _("Hello,"),
        "",
        _("The bank account application for {company} moved from {previous} to {new}.").format(
            company=company, previous=previous_label, new=new_label
        ),
        _("Changed by: {name}").format(name=change.changed_by.display_name),
    ]
    if change.comment:
        message_lines.extend(["", _("Comment:"), change.comment])
    if change.new_status == ApplicationStatus.NEED_MORE_INFO:
        message_lines.extend(
            ["", _("Please review the application and provide the requested information.")]
        )
    message_lines.extend([
        "",
        _("Application reference: {reference}").format(reference=application.pk),
        "",
        _("Regards,"),
        _("Bank Account Services Team"),
    ])

    return send_mail(
        subject,
        "\n".join(str(line) for line in message_lines),
        _default_from_email(),
        recipients,
        fail_silently=False,
    )


def send_submission_confirmation_email(application) -> int:
    """Confirm to the customer that their application was received."""

    customer = application.customer
    subject = _("Bank Account Application Received - Thank You!")
    message_lines = [
        _("Dear {name},").format(name=customer.name),
        "",
        _(
            "We have successfully received your bank account application for {company}. "
            "Our team will review your application and get back to you within 2-3 business days."
        ).format(company=customer.company),
        "",
        _("What happens next?"),
        _(" 1. Application review"),
        _(" 2. Document verification, we may contact you for additional documents"),
        _(" 3. Bank processing with your selected bank"),
        _(" 4. Account setup"),
        "",
        _("Your application reference is: {reference}").format(reference=application.pk),
        "",
        _("Best regards,"),
        _("Bank Account Services Team"),
    ]

    return send_mail(
        subject,
        "\n".join(str(line) for line in message_lines),
        _default_from_email(),
        [customer.email],
        fail_silently=False,
    )
