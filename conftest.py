"""
Shared pytest fixtures for the contact form service.
"""
import pytest
from rest_framework.test import APIClient


ENDPOINT = '/api/process/'


@pytest.fixture
def api_client():
    """API client for making requests."""
    return APIClient()


@pytest.fixture
def endpoint():
    return ENDPOINT


@pytest.fixture
def valid_payload():
    return {
        'name': 'Al',
        'email': 'al@x.com',
        'message': 'Hello there, this works',
    }


@pytest.fixture
def make_submission(db):
    """Create a stored submission directly, bypassing the endpoint."""
    from submissions.models import Submission

    def _make(name='Jane Doe', email='jane@example.com', message='A message long enough.', created_at=None):
        submission = Submission.objects.create(name=name, email=email, message=message)
        if created_at is not None:
            Submission.objects.filter(id=submission.id).update(created_at=created_at)
            submission.refresh_from_db()
        return submission
    return _make
