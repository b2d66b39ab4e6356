import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)


def _fail_silently() -> bool:
    return getattr(settings, "EMAIL_FAIL_SILENTLY", False)


def _smtp_configured() -> bool:
    return bool(settings.EMAIL_HOST and settings.EMAIL_HOST_USER and settings.EMAIL_HOST_PASSWORD)


def send_contact_notification(*, message) -> bool:
    """Forward a contact-form message to the organisation inbox.

    Returns True when the mail was handed to the backend. Sending is skipped
    (with a warning) when SMTP credentials are not configured, and failures
    are logged rather than raised so the form submission still succeeds.
    """
    if not _smtp_configured():
        logger.warning("SMTP settings are not fully set. Skipping email sending for contact form.")
        return False

    subject = (
        f"[Bhakta Sammilan Contact] {message.subject}"
        if (message.subject or "").strip()
        else f"[Bhakta Sammilan Contact] New query from {message.name}"
    )
    context = {"message": message}

    try:
        text_body = render_to_string("emails/contact_notification.txt", context)
        html_body = render_to_string("emails/contact_notification.html", context)
        msg = EmailMultiAlternatives(
            subject,
            text_body,
            settings.DEFAULT_FROM_EMAIL,
            [settings.ORG_CONTACT_EMAIL],
            reply_to=[message.email],
        )
        msg.attach_alternative(html_body, "text/html")
        return bool(msg.send(fail_silently=_fail_silently()))
    except Exception:
        logger.exception("Failed to send contact notification for message=%s", message.pk)
        return False
