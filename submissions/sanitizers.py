"""
Input sanitization for accepted submissions.

Only ever applied after ``rules.validate_submission`` has accepted the
record. Escaping may lengthen text but never shortens it, so a length
decision made on the raw value still holds for the stored one.
"""
import re

from django.utils.html import escape

# Everything except letters, digits and !#$%&'*+-=?^_`{|}~@.[]
EMAIL_UNSAFE = re.compile(r"[^A-Za-z0-9!#$%&'*+\-=?^_`{|}~@.\[\]]")


def sanitize_email(value):
    """Strip characters that cannot appear in an email address."""
    return EMAIL_UNSAFE.sub('', (value or '').strip())


def sanitize_text(value):
    """Trim and HTML-escape so markup and quotes render literally."""
    return str(escape((value or '').strip()))


def sanitize_submission(data):
    """Return the storage-safe form of an already validated record."""
    return {
        'name': sanitize_text(data.get('name')),
        'email': sanitize_email(data.get('email')),
        'message': sanitize_text(data.get('message')),
    }
