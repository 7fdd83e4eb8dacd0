"""
Submission Service Errors

Every failure the endpoint reports is one of these, carrying the envelope
text it should be rendered with. ``envelope_exception_handler`` is the DRF
exception handler that turns them (and anything unexpected) into envelopes.
"""
import logging

from rest_framework import status
from rest_framework.views import exception_handler

from .responses import envelope

logger = logging.getLogger(__name__)


class SubmissionServiceError(Exception):
    """Base class for errors reported to the caller as an envelope."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Request failed'
    default_errors = ()

    def __init__(self, message=None, errors=None):
        self.message = message or self.default_message
        self.errors = list(errors) if errors is not None else list(self.default_errors)
        super().__init__(self.message)


class ValidationError(SubmissionServiceError):
    """User input failed one or more field rules."""

    default_message = 'Validation failed'


class StorageError(SubmissionServiceError):
    """The store was unreachable or rejected a query."""

    default_message = 'Database error'
    default_errors = ('Database error occurred',)


class UnsupportedOperation(SubmissionServiceError):
    """Unsupported HTTP method or unknown action."""

    default_message = 'Invalid action'


class UnexpectedFault(SubmissionServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'Internal server error'
    default_errors = ('An unexpected error occurred',)


def envelope_exception_handler(exc, context):
    """
    Render service errors as failure envelopes.

    DRF's own exceptions (parse errors and the like) keep their status code
    but are reshaped into an envelope. Anything else is logged with its
    traceback and reported as a generic internal error.
    """
    if isinstance(exc, SubmissionServiceError):
        return envelope(False, exc.message, errors=exc.errors, status_code=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        detail = response.data.get('detail') if isinstance(response.data, dict) else None
        errors = [str(detail)] if detail else []
        headers = {
            key: response[key]
            for key in ('WWW-Authenticate', 'Retry-After')
            if response.has_header(key)
        }
        return envelope(
            False,
            'Request failed',
            errors=errors,
            status_code=response.status_code,
            headers=headers or None,
        )

    view = context.get('view')
    logger.error(
        "Unexpected error in %s: %s",
        view.__class__.__name__ if view else 'unknown view',
        exc,
        exc_info=exc,
    )
    fault = UnexpectedFault()
    return envelope(False, fault.message, errors=fault.errors, status_code=fault.status_code)
