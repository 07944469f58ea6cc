"""
Custom exception handlers for consistent API responses
"""
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

from apps.points.exceptions import StorageFault

logger = logging.getLogger(__name__)


def _is_staff(context):
    request = context.get('request')
    user = getattr(request, 'user', None)
    return bool(user is not None and user.is_staff)


def custom_exception_handler(exc, context):
    """
    Custom exception handler that returns consistent error responses
    """
    if isinstance(exc, StorageFault):
        # Already logged with context by the points engine
        message = exc.user_message if _is_staff(context) else 'Internal server error'
        return Response({
            'code': status.HTTP_503_SERVICE_UNAVAILABLE,
            'msg': message
        }, status=status.HTTP_503_SERVICE_UNAVAILABLE)

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        logger.warning("API exception: %s", exc)

        custom_response_data = {
            'code': response.status_code,
            'msg': 'An error occurred',
            'errors': response.data
        }

        # Handle specific error types
        if response.status_code == status.HTTP_400_BAD_REQUEST:
            custom_response_data['msg'] = 'Validation error'
        elif response.status_code == status.HTTP_401_UNAUTHORIZED:
            custom_response_data['msg'] = 'Authentication required'
        elif response.status_code == status.HTTP_403_FORBIDDEN:
            custom_response_data['msg'] = 'Permission denied'
        elif response.status_code == status.HTTP_404_NOT_FOUND:
            custom_response_data['msg'] = 'Resource not found'
        elif response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            custom_response_data['msg'] = 'Method not allowed'
        elif response.status_code >= 500:
            custom_response_data['msg'] = 'Internal server error'
            if not _is_staff(context):
                custom_response_data['errors'] = {'detail': 'Internal server error'}

        response.data = custom_response_data

    return response
