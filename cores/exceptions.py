"""
Error categories shared by the exam apps.

Every domain error is an ``APIException`` so views can simply raise it;
``api_exception_handler`` renders it as ``{"error": ..., "code": ...}``.
"""
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler


class InvalidRequest(APIException):
    """Malformed input the client can fix; retrying unchanged will fail again."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request.'
    default_code = 'invalid'


class StateConflict(APIException):
    """The stored state forbids the change; the client must re-fetch first."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The resource is not in a state that allows this change.'
    default_code = 'conflict'


class TemporalViolation(APIException):
    """The relevant time window is closed (or not yet open)."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'This action is outside the permitted time window.'
    default_code = 'time_window'


class ResourceNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        return None

    detail = getattr(exc, 'detail', None)
    # Field errors from serializers keep DRF's {field: [messages]} shape
    if isinstance(detail, str):
        response.data = {
            'error': str(detail),
            'code': getattr(detail, 'code', None) or getattr(exc, 'default_code', 'error'),
        }
    return response
