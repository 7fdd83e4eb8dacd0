"""
Contact Form Validation Rules

The single definition of what makes a submission acceptable. The server
evaluates these rules with ``validate_submission`` and is the authority;
the browser receives the same table through ``client_rules`` and uses it
for immediate, advisory feedback only.
"""
import re

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import EmailValidator

from .sanitizers import EMAIL_UNSAFE

# local-part@domain-with-dot
EMAIL_PATTERN = r'^[^\s@]+@[^\s@]+\.[^\s@]+$'

FIELDS = ('name', 'email', 'message')

_email_shape = re.compile(EMAIL_PATTERN)
_email_validator = EmailValidator(allowlist=[])


class FieldRule:
    """One field's acceptance rule and the message shown when it fails."""

    def __init__(self, field, message, min_length=None, pattern=None):
        self.field = field
        self.message = message
        self.min_length = min_length
        self.pattern = pattern

    def passes(self, value):
        """Shared check, identical to what the browser evaluates."""
        value = (value or '').strip()
        if not value:
            return False
        if self.min_length is not None and len(value) < self.min_length:
            return False
        if self.pattern is not None and not re.search(self.pattern, value):
            return False
        return True

    def as_client_dict(self):
        return {
            'field': self.field,
            'message': self.message,
            'minLength': self.min_length,
            'pattern': self.pattern,
        }


FIELD_RULES = (
    FieldRule('name', 'Name must be at least 2 characters long', min_length=2),
    FieldRule('email', 'Please enter a valid email address', pattern=EMAIL_PATTERN),
    FieldRule('message', 'Message must be at least 10 characters long', min_length=10),
)


def is_valid_email(value):
    """
    Server-side address check.

    Stricter than the browser: on top of the shared shape it requires an
    ASCII address that Django's ``EmailValidator`` accepts and that is
    made only of characters ``sanitize_email`` keeps, so an accepted
    address is stored unchanged. Quoted local parts are rejected.
    """
    value = (value or '').strip()
    if not value or not value.isascii() or not _email_shape.search(value):
        return False
    if EMAIL_UNSAFE.search(value):
        return False
    try:
        _email_validator(value)
    except DjangoValidationError:
        return False
    return True


def _field_value(data, field):
    value = data.get(field)
    if value is None:
        return ''
    return value if isinstance(value, str) else str(value)


def validate_submission(data):
    """
    Return every rule violation for ``data``, in field order.

    Missing fields are treated as empty. An empty list means the record
    is acceptable.
    """
    errors = []
    for rule in FIELD_RULES:
        value = _field_value(data, rule.field)
        ok = rule.passes(value)
        if ok and rule.field == 'email':
            ok = is_valid_email(value)
        if not ok:
            errors.append(rule.message)
    return errors


def client_rules():
    """Rule table in the shape consumed by contact_form.js."""
    return [rule.as_client_dict() for rule in FIELD_RULES]
