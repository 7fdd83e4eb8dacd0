"""
Submission Serializers

Input validation/sanitization for the contact form and the representation
of stored submissions.
"""
from rest_framework import serializers
from rest_framework.settings import api_settings

from .models import Submission
from .rules import validate_submission
from .sanitizers import sanitize_submission

SUBMITTED_AT_FORMAT = '%Y-%m-%d %H:%M:%S'


class FormTextField(serializers.Field):
    """
    Free-text form input that never rejects on type.

    Numbers are taken as their text form, anything else that is not a
    string (booleans, objects, lists) becomes ''. NUL characters are
    dropped. The field rules then judge every field together.
    """

    def __init__(self, **kwargs):
        kwargs.setdefault('required', False)
        kwargs.setdefault('allow_null', True)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        if isinstance(data, bool):
            return ''
        if isinstance(data, (int, float)):
            data = str(data)
        if not isinstance(data, str):
            return ''
        return data.replace('\x00', '')

    def to_representation(self, value):
        return value


class SubmissionInputSerializer(serializers.Serializer):
    """
    Public contact form submission serializer.

    Validation runs every field rule on the raw input; only once the
    record is accepted is it sanitized. ``validated_data`` is therefore
    the storage-safe record.
    """

    name = FormTextField()
    email = FormTextField()
    message = FormTextField()

    def validate(self, attrs):
        errors = validate_submission(attrs)
        if errors:
            raise serializers.ValidationError(errors)
        return sanitize_submission(attrs)

    @property
    def error_list(self):
        """Flat list of user-facing messages for a failed ``is_valid()``."""
        return [str(error) for error in self.errors.get(api_settings.NON_FIELD_ERRORS_KEY, [])]


class SubmissionSerializer(serializers.ModelSerializer):
    """Stored submission as returned by ?action=list."""

    created_at = serializers.DateTimeField(format=SUBMITTED_AT_FORMAT, read_only=True)

    class Meta:
        model = Submission
        fields = ['id', 'name', 'email', 'message', 'created_at']
