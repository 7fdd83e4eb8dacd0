"""
Integration tests for the contact form endpoint.

Exercises the full request cycle: validation, sanitization, persistence,
notification dispatch and the JSON envelope on every path.
"""
import re
from datetime import datetime, timezone as dt_timezone
from urllib.parse import urlencode

import pytest
from django.utils import timezone
from rest_framework import status

from submissions import notifications
from submissions.models import Submission
from submissions.services.storage import SubmissionStore
from submissions.exceptions import StorageError


pytestmark = pytest.mark.django_db


SUBMITTED_AT = re.compile(r'^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$')


class TestSubmitContactForm:
    """Test POST submissions."""

    def test_submit_valid_form(self, api_client, endpoint, valid_payload):
        response = api_client.post(endpoint, valid_payload)

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body['success'] is True
        assert body['message'] == 'Thank you Al! Your message has been received.'
        assert body['data']['name'] == 'Al'
        assert isinstance(body['data']['user_id'], int)
        assert body['data']['user_id'] > 0
        assert SUBMITTED_AT.match(body['data']['submitted_at'])
        assert 'errors' not in body
        assert Submission.objects.filter(id=body['data']['user_id']).exists()

    def test_submitted_at_is_stored_timestamp(self, api_client, endpoint, valid_payload, monkeypatch):
        stamped = datetime(2026, 3, 4, 15, 20, 5, tzinfo=dt_timezone.utc)
        original_create = SubmissionStore.create

        def create_with_fixed_time(self, record):
            submission = original_create(self, record)
            Submission.objects.filter(id=submission.id).update(created_at=stamped)
            submission.refresh_from_db()
            return submission

        monkeypatch.setattr(SubmissionStore, 'create', create_with_fixed_time)

        body = api_client.post(endpoint, valid_payload).json()

        expected = timezone.localtime(stamped).strftime('%Y-%m-%d %H:%M:%S')
        assert body['data']['submitted_at'] == expected
        stored = Submission.objects.get(id=body['data']['user_id'])
        assert stored.created_at == stamped

    def test_submit_url_encoded_form(self, api_client, endpoint, valid_payload):
        response = api_client.post(
            endpoint,
            urlencode(valid_payload),
            content_type='application/x-www-form-urlencoded',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()['success'] is True

    def test_response_is_json(self, api_client, endpoint, valid_payload):
        response = api_client.post(endpoint, valid_payload)
        assert response['Content-Type'] == 'application/json'

    def test_all_validation_errors_returned(self, api_client, endpoint):
        response = api_client.post(endpoint, {'name': 'A', 'email': 'bad', 'message': 'short'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body['success'] is False
        assert body['message'] == 'Validation failed'
        assert body['errors'] == [
            'Name must be at least 2 characters long',
            'Please enter a valid email address',
            'Message must be at least 10 characters long',
        ]
        assert Submission.objects.count() == 0

    def test_non_string_json_field_reports_every_error(self, api_client, endpoint):
        response = api_client.post(
            endpoint,
            {'name': True, 'email': 'bad', 'message': 'short'},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['errors'] == [
            'Name must be at least 2 characters long',
            'Please enter a valid email address',
            'Message must be at least 10 characters long',
        ]
        assert Submission.objects.count() == 0

    def test_missing_fields(self, api_client, endpoint):
        response = api_client.post(endpoint, {'name': 'Test User'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert len(response.json()['errors']) == 2

    def test_input_is_sanitized_before_storage(self, api_client, endpoint):
        response = api_client.post(endpoint, {
            'name': '  <b>Al</b>  ',
            'email': '  al@x.com ',
            'message': '  <script>alert("hi")</script>  ',
        })

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body['data']['name'] == '&lt;b&gt;Al&lt;/b&gt;'
        assert body['message'] == 'Thank you &lt;b&gt;Al&lt;/b&gt;! Your message has been received.'

        stored = Submission.objects.get(id=body['data']['user_id'])
        assert stored.email == 'al@x.com'
        assert stored.message == '&lt;script&gt;alert(&quot;hi&quot;)&lt;/script&gt;'

    def test_ids_increase(self, api_client, endpoint, valid_payload):
        first = api_client.post(endpoint, valid_payload).json()['data']['user_id']
        second = api_client.post(endpoint, valid_payload).json()['data']['user_id']
        assert second > first

    def test_storage_failure(self, api_client, endpoint, valid_payload, monkeypatch):
        def broken_create(self, record):
            raise StorageError('Failed to save data')

        monkeypatch.setattr(SubmissionStore, 'create', broken_create)

        response = api_client.post(endpoint, valid_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            'success': False,
            'message': 'Failed to save data',
            'errors': ['Database error occurred'],
        }

    def test_database_unavailable(self, api_client, endpoint, valid_payload, monkeypatch):
        def unavailable(self):
            raise StorageError('Database connection failed', ['Database is currently unavailable'])

        monkeypatch.setattr(SubmissionStore, 'ensure_schema', unavailable)

        response = api_client.post(endpoint, valid_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['message'] == 'Database connection failed'

    def test_unexpected_fault_is_generic(self, api_client, endpoint, valid_payload, monkeypatch):
        def explode(self, record):
            raise RuntimeError('secret internal detail')

        monkeypatch.setattr(SubmissionStore, 'create', explode)

        response = api_client.post(endpoint, valid_payload)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {
            'success': False,
            'message': 'Internal server error',
            'errors': ['An unexpected error occurred'],
        }
        assert b'secret internal detail' not in response.content


class TestSubmissionNotification:
    """Test the notification side-effect."""

    def test_notification_sent_after_commit(
        self, api_client, endpoint, valid_payload, mailoutbox, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            response = api_client.post(endpoint, valid_payload)

        assert response.status_code == status.HTTP_200_OK
        assert len(callbacks) == 1
        assert len(mailoutbox) == 1
        assert 'Hello there, this works' in mailoutbox[0].body

    def test_enqueue_failure_does_not_fail_response(
        self, api_client, endpoint, valid_payload, monkeypatch, django_capture_on_commit_callbacks
    ):
        def broker_down(*args, **kwargs):
            raise ConnectionError('broker unreachable')

        monkeypatch.setattr(notifications.send_submission_notification, 'delay', broker_down)

        with django_capture_on_commit_callbacks(execute=True):
            response = api_client.post(endpoint, valid_payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()['success'] is True

    def test_notifications_can_be_disabled(
        self, api_client, endpoint, valid_payload, settings, django_capture_on_commit_callbacks
    ):
        settings.CONTACT_NOTIFICATIONS_ENABLED = False

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            response = api_client.post(endpoint, valid_payload)

        assert response.status_code == status.HTTP_200_OK
        assert callbacks == []

    def test_no_notification_for_invalid_submission(
        self, api_client, endpoint, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            api_client.post(endpoint, {'name': 'A', 'email': 'bad', 'message': 'short'})

        assert callbacks == []


class TestListSubmissions:
    """Test GET ?action=list."""

    def test_list_submissions(self, api_client, endpoint, make_submission):
        older = make_submission(name='Older', created_at=datetime(2026, 3, 1, 9, 30, tzinfo=dt_timezone.utc))
        newer = make_submission(name='Newer', created_at=datetime(2026, 3, 2, 9, 30, tzinfo=dt_timezone.utc))

        response = api_client.get(endpoint, {'action': 'list'})

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body['success'] is True
        assert body['message'] == 'Data retrieved successfully'
        assert body['count'] == 2
        assert [row['id'] for row in body['data']] == [newer.id, older.id]
        assert body['data'][0] == {
            'id': newer.id,
            'name': 'Newer',
            'email': 'jane@example.com',
            'message': 'A message long enough.',
            'created_at': '2026-03-02 09:30:00',
        }

    def test_list_is_default_action(self, api_client, endpoint, make_submission):
        make_submission()

        response = api_client.get(endpoint)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()['count'] == 1

    def test_list_empty(self, api_client, endpoint):
        response = api_client.get(endpoint, {'action': 'list'})

        assert response.json()['data'] == []
        assert response.json()['count'] == 0

    def test_round_trip_through_endpoint(self, api_client, endpoint, valid_payload):
        new_id = api_client.post(endpoint, valid_payload).json()['data']['user_id']

        rows = api_client.get(endpoint, {'action': 'list'}).json()['data']

        assert rows[0]['id'] == new_id
        assert rows[0]['name'] == 'Al'
        assert rows[0]['email'] == 'al@x.com'
        assert rows[0]['message'] == 'Hello there, this works'

    def test_list_storage_failure(self, api_client, endpoint, monkeypatch):
        def broken_list(self):
            raise StorageError('Failed to retrieve data')

        monkeypatch.setattr(SubmissionStore, 'list_all', broken_list)

        response = api_client.get(endpoint, {'action': 'list'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            'success': False,
            'message': 'Failed to retrieve data',
            'errors': ['Database error occurred'],
        }


class TestSubmissionStats:
    """Test GET ?action=stats."""

    def test_stats_on_empty_store(self, api_client, endpoint):
        response = api_client.get(endpoint, {'action': 'stats'})

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body['success'] is True
        assert body['message'] == 'Statistics retrieved successfully'
        assert body['data'] == {'total_submissions': 0, 'daily_stats': []}

    def test_stats_counts(self, api_client, endpoint, make_submission):
        for day in (1, 1, 2):
            make_submission(created_at=datetime(2026, 3, day, 12, tzinfo=dt_timezone.utc))

        body = api_client.get(endpoint, {'action': 'stats'}).json()

        assert body['data']['total_submissions'] == 3
        assert body['data']['daily_stats'] == [
            {'date': '2026-03-02', 'count': 1},
            {'date': '2026-03-01', 'count': 2},
        ]

    def test_stats_limited_to_seven_days(self, api_client, endpoint, make_submission):
        for day in range(1, 10):
            make_submission(created_at=datetime(2026, 3, day, 12, tzinfo=dt_timezone.utc))

        body = api_client.get(endpoint, {'action': 'stats'}).json()

        assert body['data']['total_submissions'] == 9
        assert len(body['data']['daily_stats']) == 7

    def test_stats_storage_failure(self, api_client, endpoint, monkeypatch):
        def broken_count(self):
            raise StorageError('Failed to retrieve statistics')

        monkeypatch.setattr(SubmissionStore, 'total_count', broken_count)

        response = api_client.get(endpoint, {'action': 'stats'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['message'] == 'Failed to retrieve statistics'


class TestUnsupportedRequests:
    """Test unknown actions and methods."""

    def test_invalid_action(self, api_client, endpoint):
        response = api_client.get(endpoint, {'action': 'bogus'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            'success': False,
            'message': 'Invalid action',
            'errors': ['Supported actions: list, stats'],
        }

    @pytest.mark.parametrize('method', ['put', 'patch', 'delete'])
    def test_method_not_allowed(self, api_client, endpoint, method):
        response = getattr(api_client, method)(endpoint, {'name': 'Al'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            'success': False,
            'message': 'Method not allowed',
            'errors': ['Only POST and GET methods are supported'],
        }

    def test_endpoint_without_trailing_slash(self, api_client):
        response = api_client.get('/api/process', {'action': 'stats'})
        assert response.status_code == status.HTTP_200_OK


class TestCors:
    """Test CORS behaviour."""

    def test_options_is_bare_ok(self, api_client, endpoint):
        response = api_client.options(endpoint)

        assert response.status_code == status.HTTP_200_OK
        assert response.content == b''

    def test_preflight(self, api_client, endpoint):
        response = api_client.options(
            endpoint,
            HTTP_ORIGIN='https://somewhere.example',
            HTTP_ACCESS_CONTROL_REQUEST_METHOD='POST',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response['Access-Control-Allow-Origin'] == '*'
        assert 'POST' in response['Access-Control-Allow-Methods']

    def test_cross_origin_response_headers(self, api_client, endpoint):
        response = api_client.get(
            endpoint,
            {'action': 'stats'},
            HTTP_ORIGIN='https://somewhere.example',
        )

        assert response['Access-Control-Allow-Origin'] == '*'


class TestContactFormPage:
    """Test the page serving the client controller."""

    def test_page_embeds_rules_and_endpoint(self, client):
        response = client.get('/')

        assert response.status_code == status.HTTP_200_OK
        content = response.content.decode()
        assert 'id="contact-form-config"' in content
        assert '/api/process' in content
        assert 'Name must be at least 2 characters long' in content
        assert 'submissions/js/contact_form.js' in content
