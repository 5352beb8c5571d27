"""
Activity notification exceptions and API error rendering.
"""
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler


class ActivityNotificationError(Exception):
    """Base exception for activity notification errors."""
    pass


class ConfigError(ActivityNotificationError):
    """Invalid or missing role configuration."""
    pass


class DeleteRestrictionError(ActivityNotificationError):
    """Deletion blocked by notifications depending on the deleted record."""
    pass


class NotifiableNotFoundError(ActivityNotificationError):
    """Notifiable record could not be loaded."""
    pass


class InvalidParameterError(ActivityNotificationError):
    """Request parameter could not be interpreted."""
    pass


def error_response(code, message, type_):
    """Build the error envelope used by every API endpoint."""
    return {
        'gem': 'activity_notification',
        'error': {
            'code': code,
            'message': message,
            'type': type_,
        }
    }


ERROR_MESSAGES = {
    status.HTTP_400_BAD_REQUEST: 'Bad Request',
    status.HTTP_401_UNAUTHORIZED: 'Unauthorized',
    status.HTTP_403_FORBIDDEN: 'Forbidden',
    status.HTTP_404_NOT_FOUND: 'Resource not found',
    status.HTTP_422_UNPROCESSABLE_ENTITY: 'Unprocessable entity',
}


def api_exception_handler(exc, context):
    """
    Render errors raised by the notification API in the error envelope.

    Django validation errors become 422 responses and invalid parameters
    become 400 responses. Everything else goes through DRF's handler first.
    """
    if isinstance(exc, DjangoValidationError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
        return Response(
            error_response(code, ERROR_MESSAGES[code], '; '.join(exc.messages)),
            status=code
        )
    if isinstance(exc, InvalidParameterError):
        code = status.HTTP_400_BAD_REQUEST
        return Response(
            error_response(code, 'Invalid parameter', str(exc)),
            status=code
        )

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, Http404):
        detail = str(exc) or 'Not found'
    elif isinstance(exc, exceptions.APIException):
        detail = exc.detail
    else:
        detail = response.data

    if isinstance(exc, exceptions.ValidationError):
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        if isinstance(exc.detail, dict):
            detail = '; '.join(
                f"{field}: {' '.join(str(m) for m in messages) if isinstance(messages, list) else messages}"
                for field, messages in exc.detail.items()
            )

    code = response.status_code
    if isinstance(detail, list):
        detail = ' '.join(str(d) for d in detail)
    response.data = error_response(code, ERROR_MESSAGES.get(code, str(detail)), str(detail))
    return response
