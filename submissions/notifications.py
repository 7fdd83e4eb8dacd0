"""
Fire-and-forget dispatch of the new-submission notification.

The notification must never fail or hold up the HTTP response, so it is
queued only after the insert commits and enqueue errors are logged, not
raised.
"""
import logging

from django.conf import settings
from django.db import transaction

from .tasks import send_submission_notification

logger = logging.getLogger(__name__)


def _enqueue(submission_id):
    try:
        send_submission_notification.delay(submission_id)
    except Exception as exc:
        logger.error(
            f"Could not queue notification for submission #{submission_id}: {exc}",
            exc_info=True,
        )


def queue_submission_notification(submission_id):
    """Schedule the staff notification for ``submission_id``."""
    if not getattr(settings, 'CONTACT_NOTIFICATIONS_ENABLED', True):
        logger.debug(f"Notifications disabled, skipping submission #{submission_id}")
        return
    transaction.on_commit(lambda: _enqueue(submission_id))
