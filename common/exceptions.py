"""
Custom exception handler and shared exception types for Django REST Framework.
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    NotAuthenticated,
    ValidationError as DRFValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ActionFailed(APIException):
    """
    A domain rule rejected the request (poll closed, lottery already
    drawn, ...). Raised from service functions and rendered as a 400.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The action could not be completed.'
    default_code = 'action_failed'


class StoreError(APIException):
    """A write was rejected by the database."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The change could not be saved.'
    default_code = 'store_error'


def custom_exception_handler(exc, context):
    """
    Custom exception handler that returns consistent JSON error responses.

    Response format:
    {
        "success": false,
        "error": {
            "code": "error_code",
            "message": "Human-readable message",
            "details": { ... }  // optional, for field-level validation errors
        }
    }
    """
    # Convert Django ValidationError to DRF ValidationError
    if isinstance(exc, DjangoValidationError):
        exc = DRFValidationError(detail=exc.message_dict if hasattr(exc, 'message_dict') else exc.messages)

    # Surface database constraint failures verbatim
    if isinstance(exc, IntegrityError):
        logger.warning('Store rejected write in %s: %s', context.get('view', 'unknown view'), exc)
        exc = StoreError(detail=str(exc))

    # Call DRF's default exception handler first
    response = exception_handler(exc, context)

    if response is None:
        # Unhandled exception
        logger.exception(
            'Unhandled exception in %s',
            context.get('view', 'unknown view'),
            exc_info=exc,
        )
        return Response(
            {
                'success': False,
                'error': {
                    'code': 'internal_error',
                    'message': 'An unexpected error occurred. Please try again later.',
                },
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    # Build structured error response
    error_response = {
        'success': False,
        'error': _format_error(exc, response),
    }

    response.data = error_response
    return response


def _format_error(exc, response):
    """Format the error payload based on exception type."""
    if isinstance(exc, DRFValidationError):
        return {
            'code': 'validation_error',
            'message': _first_message(response.data) or 'Invalid input.',
            'details': response.data,
        }

    if isinstance(exc, NotAuthenticated):
        return {
            'code': 'not_authenticated',
            'message': 'Not authenticated',
        }

    if isinstance(exc, Http404):
        return {
            'code': 'not_found',
            'message': 'The requested resource was not found.',
        }

    if isinstance(exc, APIException):
        return {
            'code': getattr(exc.detail, 'code', None) or exc.default_code,
            'message': str(exc.detail),
        }

    return {
        'code': 'error',
        'message': 'An error occurred.',
    }


def _first_message(data):
    """Pull the first human-readable message out of a DRF error structure."""
    if isinstance(data, dict):
        for value in data.values():
            message = _first_message(value)
            if message:
                return message
        return None
    if isinstance(data, (list, tuple)):
        for value in data:
            message = _first_message(value)
            if message:
                return message
        return None
    return str(data) if data else None
