"""
Response envelope.

Every endpoint reply has the shape ``{success, message, data?, errors?}``
plus any extra top-level keys (``count`` on list replies).
"""
from rest_framework import status
from rest_framework.response import Response


def envelope(success, message, data=None, errors=None, status_code=None, headers=None, **extra):
    """Build a DRF Response carrying the standard envelope."""
    payload = {
        'success': success,
        'message': message,
    }
    if data is not None:
        payload['data'] = data
    if errors is not None:
        payload['errors'] = list(errors)
    payload.update(extra)

    if status_code is None:
        status_code = status.HTTP_200_OK if success else status.HTTP_400_BAD_REQUEST

    return Response(payload, status=status_code, headers=headers)
