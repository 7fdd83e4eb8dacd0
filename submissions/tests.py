"""
Tests for contact form validation, sanitization, storage and notifications
"""
import pytest
from datetime import datetime, timezone as dt_timezone
from django.core.management import call_command
from django.db import DatabaseError, connection
from django.db.models.query import QuerySet

from submissions.choices import QueryAction
from submissions.exceptions import StorageError
from submissions.models import Submission
from submissions.rules import FIELD_RULES, client_rules, is_valid_email, validate_submission
from submissions.sanitizers import sanitize_email, sanitize_submission, sanitize_text
from submissions.serializers import SubmissionInputSerializer
from submissions.services.storage import SubmissionStore
from submissions.tasks import build_notification, send_submission_notification

NAME_ERROR = 'Name must be at least 2 characters long'
EMAIL_ERROR = 'Please enter a valid email address'
MESSAGE_ERROR = 'Message must be at least 10 characters long'


def _dt(day, hour=12):
    return datetime(2026, 3, day, hour, 0, tzinfo=dt_timezone.utc)


class TestValidationRules:
    """Test the shared field rules."""

    def test_valid_record_has_no_errors(self, valid_payload):
        assert validate_submission(valid_payload) == []

    def test_all_errors_reported_in_field_order(self):
        errors = validate_submission({'name': 'A', 'email': 'bad', 'message': 'short'})
        assert errors == [NAME_ERROR, EMAIL_ERROR, MESSAGE_ERROR]

    def test_missing_fields_treated_as_empty(self):
        assert validate_submission({}) == [NAME_ERROR, EMAIL_ERROR, MESSAGE_ERROR]

    @pytest.mark.parametrize('name', ['', ' ', 'A', '  A  ', None])
    def test_short_name_flagged_regardless_of_other_fields(self, name, valid_payload):
        valid_payload['name'] = name
        assert validate_submission(valid_payload) == [NAME_ERROR]

    def test_name_measured_after_trimming(self, valid_payload):
        valid_payload['name'] = '  Al  '
        assert validate_submission(valid_payload) == []

    @pytest.mark.parametrize('message', ['', 'short', '  123456789  ', None])
    def test_short_message_flagged(self, message, valid_payload):
        valid_payload['message'] = message
        assert validate_submission(valid_payload) == [MESSAGE_ERROR]

    def test_message_of_exactly_ten_characters_passes(self, valid_payload):
        valid_payload['message'] = '1234567890'
        assert validate_submission(valid_payload) == []

    @pytest.mark.parametrize('email', [
        '',
        'bad',
        'no-at-sign.com',
        'user@nodot',
        'user@localhost',
        '@x.com',
        'two words@x.com',
        'user@@x.com',
        'josé@x.com',
    ])
    def test_invalid_email_flagged(self, email, valid_payload):
        valid_payload['email'] = email
        assert validate_submission(valid_payload) == [EMAIL_ERROR]

    @pytest.mark.parametrize('email', [
        'al@x.com',
        'first.last+tag@sub.example.org',
        '  padded@example.com  ',
    ])
    def test_valid_email_accepted(self, email):
        assert is_valid_email(email)

    def test_non_string_values_are_coerced(self):
        errors = validate_submission({'name': 12, 'email': 'al@x.com', 'message': 1234567890})
        assert errors == []

    def test_client_rules_mirror_server_table(self):
        rules = client_rules()
        assert [rule['field'] for rule in rules] == ['name', 'email', 'message']
        assert rules[0]['minLength'] == 2
        assert rules[1]['pattern'] == r'^[^\s@]+@[^\s@]+\.[^\s@]+$'
        assert rules[2]['minLength'] == 10
        assert [rule['message'] for rule in rules] == [rule.message for rule in FIELD_RULES]


class TestSanitization:
    """Test sanitization of accepted records."""

    def test_markup_is_escaped(self):
        assert sanitize_text('<b>Al</b>') == '&lt;b&gt;Al&lt;/b&gt;'

    def test_quotes_are_escaped(self):
        assert sanitize_text('O\'Neil "Al"') == 'O&#x27;Neil &quot;Al&quot;'

    def test_text_is_trimmed(self):
        assert sanitize_text('  Hello  ') == 'Hello'

    @pytest.mark.parametrize('text', [
        'Plain message here',
        '<script>alert(1)</script>',
        'Fish & chips, "please"',
    ])
    def test_escaping_never_shortens(self, text):
        assert len(sanitize_text(text)) >= len(text.strip())

    def test_email_drops_illegal_characters(self):
        assert sanitize_email(' al(comment)@x.com ') == 'alcomment@x.com'

    def test_sanitized_valid_email_stays_valid(self, valid_payload):
        valid_payload['email'] = 'first.last+tag@sub.example.org'
        clean = sanitize_submission(valid_payload)
        assert clean['email'] == 'first.last+tag@sub.example.org'
        assert is_valid_email(clean['email'])

    @pytest.mark.parametrize('email', ['"..."@x.com', '"al"@x.com', '"a b"@x.com', 'al(x)@x.com'])
    def test_address_sanitizing_would_alter_is_rejected(self, email, valid_payload):
        valid_payload['email'] = email
        assert validate_submission(valid_payload) == [EMAIL_ERROR]

    @pytest.mark.parametrize('email', [
        'al@x.com',
        '  padded@example.com  ',
        "o'neil+news@mail.example.co.uk",
        'a_b-c@x.com',
    ])
    def test_accepted_email_is_stored_unchanged(self, email, valid_payload):
        valid_payload['email'] = email
        assert validate_submission(valid_payload) == []
        clean = sanitize_submission(valid_payload)
        assert clean['email'] == email.strip()
        assert is_valid_email(clean['email'])


class TestSubmissionInputSerializer:
    """Test the serializer wrapping validation and sanitization."""

    def test_valid_data_is_sanitized(self):
        serializer = SubmissionInputSerializer(data={
            'name': '  <i>Al</i> ',
            'email': ' al@x.com ',
            'message': ' Hello there, this works ',
        })
        assert serializer.is_valid()
        assert serializer.validated_data == {
            'name': '&lt;i&gt;Al&lt;/i&gt;',
            'email': 'al@x.com',
            'message': 'Hello there, this works',
        }

    def test_invalid_data_error_list(self):
        serializer = SubmissionInputSerializer(data={'name': 'A', 'email': 'bad', 'message': 'short'})
        assert not serializer.is_valid()
        assert serializer.error_list == [NAME_ERROR, EMAIL_ERROR, MESSAGE_ERROR]

    def test_non_string_field_reports_rule_message(self):
        serializer = SubmissionInputSerializer(data={
            'name': {'first': 'Al'},
            'email': 'al@x.com',
            'message': 'Hello there, this works',
        })
        assert not serializer.is_valid()
        assert serializer.error_list == [NAME_ERROR]

    @pytest.mark.parametrize('name', [True, ['Al'], {'first': 'Al'}])
    def test_non_string_field_does_not_hide_other_errors(self, name):
        serializer = SubmissionInputSerializer(data={'name': name, 'email': 'bad', 'message': 'short'})
        assert not serializer.is_valid()
        assert serializer.error_list == [NAME_ERROR, EMAIL_ERROR, MESSAGE_ERROR]

    def test_numbers_are_taken_as_text(self):
        serializer = SubmissionInputSerializer(data={
            'name': 42,
            'email': 'al@x.com',
            'message': 1234567890,
        })
        assert serializer.is_valid()
        assert serializer.validated_data['name'] == '42'
        assert serializer.validated_data['message'] == '1234567890'

    def test_nul_characters_are_dropped(self):
        serializer = SubmissionInputSerializer(data={
            'name': 'A\x00l',
            'email': 'al@x.com',
            'message': 'Hello\x00 there, this works',
        })
        assert serializer.is_valid()
        assert serializer.validated_data['name'] == 'Al'
        assert '\x00' not in serializer.validated_data['message']


@pytest.mark.django_db
class TestSubmissionStore:
    """Test the storage service."""

    def test_ensure_schema_is_idempotent(self):
        store = SubmissionStore()
        assert store.ensure_schema() is False
        assert store.ensure_schema() is False
        tables = connection.introspection.table_names()
        assert tables.count('users') == 1

    def test_create_returns_stored_row(self):
        submission = SubmissionStore().create(
            {'name': 'Al', 'email': 'al@x.com', 'message': 'Hello there, this works'}
        )
        stored = Submission.objects.get(id=submission.id)
        assert submission.created_at == stored.created_at
        assert submission.name == 'Al'

    def test_insert_returns_increasing_ids(self):
        store = SubmissionStore()
        first = store.insert({'name': 'Al', 'email': 'al@x.com', 'message': 'Hello there, this works'})
        second = store.insert({'name': 'Bo', 'email': 'bo@x.com', 'message': 'Another message here'})
        assert first > 0
        assert second > first

    def test_insert_then_list_round_trip(self):
        store = SubmissionStore()
        prior = store.insert({'name': 'Al', 'email': 'al@x.com', 'message': 'Hello there, this works'})
        new_id = store.insert({'name': 'Bo &amp; Co', 'email': 'bo@x.com', 'message': 'Another message here'})

        rows = store.list_all()
        assert new_id > prior
        match = [row for row in rows if row.id == new_id]
        assert len(match) == 1
        assert match[0].name == 'Bo &amp; Co'
        assert match[0].email == 'bo@x.com'
        assert match[0].message == 'Another message here'
        assert match[0].created_at is not None

    def test_list_is_most_recent_first(self, make_submission):
        old = make_submission(name='Old', created_at=_dt(1))
        new = make_submission(name='New', created_at=_dt(3))
        middle = make_submission(name='Middle', created_at=_dt(2))

        assert [row.id for row in SubmissionStore().list_all()] == [new.id, middle.id, old.id]

    def test_daily_stats_groups_by_date(self, make_submission):
        make_submission(created_at=_dt(1, hour=9))
        make_submission(created_at=_dt(3, hour=8))
        make_submission(created_at=_dt(3, hour=10))
        make_submission(created_at=_dt(3, hour=23))

        assert SubmissionStore().daily_stats() == [
            {'date': '2026-03-03', 'count': 3},
            {'date': '2026-03-01', 'count': 1},
        ]

    def test_daily_stats_limited_to_most_recent_days(self, make_submission):
        for day in range(1, 11):
            make_submission(created_at=_dt(day))

        stats = SubmissionStore().daily_stats(limit=7)
        assert len(stats) == 7
        assert stats[0]['date'] == '2026-03-10'
        assert stats[-1]['date'] == '2026-03-04'

    def test_empty_store(self):
        store = SubmissionStore()
        assert store.total_count() == 0
        assert store.daily_stats() == []
        assert store.list_all() == []

    def test_total_count(self, make_submission):
        make_submission()
        make_submission()
        assert SubmissionStore().total_count() == 2

    def test_insert_failure_raises_storage_error(self, monkeypatch):
        def broken_create(self, **kwargs):
            raise DatabaseError('disk I/O error')

        monkeypatch.setattr(QuerySet, 'create', broken_create)

        with pytest.raises(StorageError) as excinfo:
            SubmissionStore().insert({'name': 'Al', 'email': 'al@x.com', 'message': 'Hello there, this works'})

        assert excinfo.value.message == 'Failed to save data'
        assert excinfo.value.errors == ['Database error occurred']
        assert 'disk I/O error' not in str(excinfo.value)

    def test_count_failure_raises_storage_error(self, monkeypatch):
        def broken_count(self):
            raise DatabaseError('no such table: users')

        monkeypatch.setattr(QuerySet, 'count', broken_count)

        with pytest.raises(StorageError) as excinfo:
            SubmissionStore().total_count()
        assert excinfo.value.message == 'Failed to retrieve statistics'

    def test_unreachable_store_on_schema_check(self, monkeypatch):
        def unreachable(self):
            raise DatabaseError('unable to open database file')

        monkeypatch.setattr(SubmissionStore, '_table_exists', unreachable)

        with pytest.raises(StorageError) as excinfo:
            SubmissionStore().ensure_schema()
        assert excinfo.value.message == 'Database connection failed'
        assert excinfo.value.errors == ['Database is currently unavailable']


@pytest.mark.django_db(transaction=True)
class TestSchemaCreation:
    """Test creating the table from scratch."""

    def test_ensure_schema_creates_missing_table(self):
        with connection.schema_editor() as editor:
            editor.delete_model(Submission)
        assert 'users' not in connection.introspection.table_names()

        store = SubmissionStore()
        assert store.ensure_schema() is True
        assert store.ensure_schema() is False
        assert 'users' in connection.introspection.table_names()

    def test_management_command(self, capsys):
        call_command('ensure_submission_schema')
        assert 'already exists' in capsys.readouterr().out


class TestQueryAction:
    """Test the read action enumeration."""

    def test_supported_actions(self):
        assert QueryAction.supported() == 'list, stats'

    def test_unknown_action_rejected(self):
        with pytest.raises(ValueError):
            QueryAction('bogus')


@pytest.mark.django_db
class TestNotificationTask:
    """Test the notification email task."""

    def test_notification_email_sent(self, make_submission, mailoutbox, settings):
        settings.CONTACT_EMAIL_TO = 'staff@example.com'
        submission = make_submission(name='O&#x27;Neil', message='Fish &amp; chips please')

        result = send_submission_notification.apply(args=[submission.id]).get()

        assert result == f"Notification sent for submission #{submission.id}"
        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == ['staff@example.com']
        assert f'#{submission.id}' in mailoutbox[0].subject
        assert "Name: O'Neil" in mailoutbox[0].body
        assert 'Message: Fish & chips please' in mailoutbox[0].body

    def test_missing_submission(self, mailoutbox):
        result = send_submission_notification.apply(args=[999999]).get()
        assert result == 'Submission 999999 not found'
        assert mailoutbox == []

    def test_build_notification(self, make_submission):
        submission = make_submission(name='Jane', email='jane@example.com', created_at=_dt(5, hour=14))
        subject, body = build_notification(submission)
        assert subject == f"New Contact Form Submission - #{submission.id}"
        assert 'Email: jane@example.com' in body
        assert 'Time: 2026-03-05 14:00:00' in body


class TestBrokerPublishBounds:
    """Test that queuing a notification cannot stall a request for long."""

    def test_publish_does_not_retry(self):
        from contactform.celery import app
        assert app.conf.task_publish_retry is False

    def test_connect_timeout_is_short(self, settings):
        from contactform.celery import app
        assert app.conf.broker_connection_timeout == settings.CELERY_BROKER_CONNECTION_TIMEOUT
        assert settings.CELERY_BROKER_CONNECTION_TIMEOUT <= 1
