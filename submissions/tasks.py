"""
Submission Email Tasks

Celery tasks for the notification sent when a new submission arrives.
"""
import html
import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from .models import Submission

logger = logging.getLogger(__name__)


def build_notification(submission):
    """Subject and plain-text body for a staff notification."""
    subject = f"New Contact Form Submission - #{submission.id}"
    received = timezone.localtime(submission.created_at).strftime('%Y-%m-%d %H:%M:%S')

    # Stored text is HTML-escaped; the email is plain text
    text_content = f"""New form submission received:

Name: {html.unescape(submission.name)}
Email: {submission.email}
Message: {html.unescape(submission.message)}
Time: {received}
"""
    return subject, text_content


@shared_task(bind=True, max_retries=3)
def send_submission_notification(self, submission_id):
    """
    Notify staff about a new contact form submission.

    Args:
        submission_id: id of the Submission
    """
    try:
        submission = Submission.objects.get(id=submission_id)

        subject, text_content = build_notification(submission)
        logger.info(f"Email notification: {text_content}")

        send_mail(
            subject=subject,
            message=text_content,
            from_email=getattr(settings, 'CONTACT_EMAIL_FROM', settings.DEFAULT_FROM_EMAIL),
            recipient_list=[settings.CONTACT_EMAIL_TO],
            fail_silently=False
        )

        return f"Notification sent for submission #{submission.id}"

    except Submission.DoesNotExist:
        return f"Submission {submission_id} not found"

    except Exception as exc:
        logger.error(f"Notification for submission {submission_id} failed: {exc}")
        raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))
