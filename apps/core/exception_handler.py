"""
Project-wide DRF exception handler.

Every error leaving the API has the same body::

    {
        "success": false,
        "error": true,
        "code": "invalid_transition",
        "message": "Cannot transition from VALIDEE to EN_ATTENTE",
        "status": 409,
        "path": "/api/expenses/12/status/",
        "method": "POST",
        "timestamp": "2026-01-31T10:00:00+00:00",
        "details": {...},        # validation / transition errors only
        "suggestion": {...}      # authentication errors only
    }
"""
import logging

from django.db import IntegrityError
from django.utils import timezone
from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler, set_rollback

from .exceptions import (
    AuthenticationFailure,
    ConfigurationFailureError,
    DuplicateResourceError,
    InvalidTransitionError,
    ValidationFailureError,
    is_unique_violation,
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_CODE = 'internal_error'
INTERNAL_ERROR_MESSAGE = 'An unexpected error occurred. Please try again later.'

LOGIN_SUGGESTION = {
    'endpoint': '/api/auth/login/',
    'action': 'login',
    'message': 'Authenticate to obtain an access token.',
}


def error_body(request, *, status_code, code, message, details=None, suggestion=None):
    body = {
        'success': False,
        'error': True,
        'code': code,
        'message': message,
        'status': status_code,
        'path': request.path if request is not None else None,
        'method': request.method if request is not None else None,
        'timestamp': timezone.now().isoformat(),
    }
    if details:
        body['details'] = details
    if suggestion:
        body['suggestion'] = suggestion
    return body


def _code_for(exc):
    if isinstance(exc, drf_exceptions.ValidationError):
        return ValidationFailureError.default_code
    if isinstance(exc, drf_exceptions.NotFound):
        return 'resource_not_found'
    return getattr(exc, 'default_code', 'error')


def _message_for(exc):
    if isinstance(exc, drf_exceptions.ValidationError):
        return ValidationFailureError.default_detail
    detail = exc.detail
    if isinstance(detail, (list, dict)):
        return str(exc.default_detail)
    return str(detail)


def _details_for(exc, response):
    if isinstance(exc, ValidationFailureError):
        return exc.details
    if isinstance(exc, drf_exceptions.ValidationError):
        return response.data
    if isinstance(exc, InvalidTransitionError):
        return {'current': str(exc.current), 'requested': str(exc.requested)}
    if isinstance(exc, DuplicateResourceError) and exc.field:
        return {'field': exc.field}
    return None


def _suggestion_for(exc):
    if isinstance(exc, AuthenticationFailure):
        return exc.suggestion
    if isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
        return LOGIN_SUGGESTION
    return None


def svs_exception_handler(exc, context):
    """Convert any exception raised by a view into the uniform error body."""
    request = context.get('request')

    if isinstance(exc, IntegrityError) and is_unique_violation(exc):
        logger.warning("Integrity error surfaced as duplicate resource: %s", exc)
        wrapped = DuplicateResourceError('Resource conflicts with an existing record.')
        wrapped.__cause__ = exc
        exc = wrapped

    response = drf_exception_handler(exc, context)

    if response is None:
        set_rollback()
        logger.error(
            "Unhandled error on %s %s",
            getattr(request, 'method', '?'),
            getattr(request, 'path', '?'),
            exc_info=exc,
        )
        body = error_body(
            request,
            status_code=500,
            code=INTERNAL_ERROR_CODE,
            message=INTERNAL_ERROR_MESSAGE,
        )
        return Response(body, status=500)

    if isinstance(exc, ConfigurationFailureError):
        logger.error("Configuration failure: %s", exc.detail, exc_info=exc)
    elif isinstance(exc, AuthenticationFailure):
        logger.warning("Authentication failure (%s): %s", exc.default_code, exc.detail)

    response.data = error_body(
        request,
        status_code=response.status_code,
        code=_code_for(exc),
        message=_message_for(exc),
        details=_details_for(exc, response),
        suggestion=_suggestion_for(exc),
    )
    return response
