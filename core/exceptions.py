"""Typed business errors raised by the gig store and lifecycle engine.

Every error is a DRF ``APIException`` so a view can let it propagate and the
framework renders the matching HTTP status. Callers that use the engine as
plain functions catch them by class.
"""
import functools
import logging

from django.db import InterfaceError, OperationalError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class GigError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Gig operation failed.'
    default_code = 'gig_error'


class ValidationError(GigError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'invalid'


class NotFound(GigError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class Forbidden(GigError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You are not allowed to perform this action.'
    default_code = 'forbidden'


class InvalidTransition(GigError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Action is not allowed in the current gig status.'
    default_code = 'invalid_transition'


class DuplicateApplication(GigError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'You have already applied for this gig.'
    default_code = 'duplicate_application'


class ApplicationLimitReached(GigError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Maximum applications reached for this gig.'
    default_code = 'application_limit_reached'


class ConflictError(GigError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The resource has already been processed.'
    default_code = 'conflict'


class StorageUnavailable(GigError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Storage is temporarily unavailable, please retry.'
    default_code = 'storage_unavailable'


def storage_guard(func):
    """Re-raise database connectivity failures as StorageUnavailable."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Storage failure in {func.__name__}: {str(e)}")
            raise StorageUnavailable() from e
    return wrapper


def api_exception_handler(exc, context):
    if isinstance(exc, (OperationalError, InterfaceError)):
        logger.error(f"Storage failure while handling {context.get('view').__class__.__name__}: {str(exc)}")
        exc = StorageUnavailable()

    response = exception_handler(exc, context)
    if response is not None and isinstance(exc, GigError):
        response.data = {
            'success': False,
            'error': exc.default_code,
            'message': str(exc.detail),
        }
    return response
