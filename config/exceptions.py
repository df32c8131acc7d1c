"""
DRF exception handler producing the API's failure envelope.

Every failed API response has the shape ``{'success': 0, 'message': ...}``,
optionally with a machine readable ``code`` and field ``errors`` for
validation failures.
"""

import structlog
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.groups.services.exceptions import GroupsServiceError, StoreError

logger = structlog.get_logger(__name__)


def _first_message(detail):
    """Pull a single human readable message out of nested DRF error detail."""
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
        return 'Invalid request'
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else 'Invalid request'
    return str(detail)


def api_exception_handler(exc, context):
    """
    Convert exceptions raised by API views into the failure envelope.

    DRF exceptions keep their status codes. Domain errors that escape a view
    are reported by their reason code; store errors become a generic 500 so
    internals never reach the client.
    """
    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else None

    if isinstance(exc, StoreError):
        logger.error('api_store_error', view=view_name, error=str(exc))
        return Response(
            {'success': 0, 'message': 'Internal server error', 'code': exc.code},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, GroupsServiceError):
        logger.warning('api_unhandled_domain_error', view=view_name, code=exc.code)
        return Response(
            {'success': 0, 'message': str(exc), 'code': exc.code},
            status=status.HTTP_400_BAD_REQUEST,
        )

    response = exception_handler(exc, context)
    if response is None:
        return None

    body = {
        'success': 0,
        'message': _first_message(response.data),
        'code': getattr(exc, 'default_code', 'error'),
    }
    if isinstance(exc, ValidationError):
        body['errors'] = response.data
    detail_code = getattr(getattr(exc, 'detail', None), 'code', None)
    if detail_code:
        body['code'] = detail_code
    response.data = body
    return response
