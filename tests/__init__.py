"""
Centralized test suite for the contact form service.

Test Organization:
- integration/ - HTTP tests against /api/process/ and the form page
- App-specific unit tests live in their app directory (submissions/tests.py)
"""
