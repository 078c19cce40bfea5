"""
Error taxonomy and the DRF exception handler.

Every rejection raised by the marketplace core carries a locale-independent
machine-readable code so clients can localize messages on their side.
"""
import logging
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django_ratelimit.exceptions import Ratelimited
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class MedilinkError(Exception):
    """Base exception for Medilink-specific errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'ERROR'

    def __init__(self, message, code=None, details=None):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self):
        return {
            'code': self.code,
            'message': self.message,
            'details': self.details,
        }


class Unauthenticated(MedilinkError):
    """Raised when the session credential is missing, invalid or expired."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = 'UNAUTHENTICATED'


class NoActiveTenant(MedilinkError):
    """Raised when a valid session carries no active organization."""
    status_code = status.HTTP_403_FORBIDDEN
    default_code = 'NO_ACTIVE_TENANT'


class Forbidden(MedilinkError):
    """Raised when the actor may see a resource but not perform the action."""
    status_code = status.HTTP_403_FORBIDDEN
    default_code = 'FORBIDDEN'


class NotFound(MedilinkError):
    """Raised when a resource does not exist or belongs to another tenant."""
    status_code = status.HTTP_404_NOT_FOUND
    default_code = 'NOT_FOUND'


class InvalidTransition(MedilinkError):
    """Raised when a workflow entity cannot move to the requested status."""
    status_code = status.HTTP_409_CONFLICT
    default_code = 'INVALID_TRANSITION'

    def __init__(self, entity_kind, from_status, attempted_to, message=None):
        self.entity_kind = str(entity_kind)
        self.from_status = str(from_status)
        self.attempted_to = str(attempted_to)
        super().__init__(
            message or f"Cannot transition {self.entity_kind} from '{self.from_status}' to '{self.attempted_to}'",
            details={
                'entity_kind': self.entity_kind,
                'from_status': self.from_status,
                'attempted_to': self.attempted_to,
            }
        )


class LastOwnerViolation(MedilinkError):
    """Raised when a change would leave an organization without an owner."""
    status_code = status.HTTP_409_CONFLICT
    default_code = 'LAST_OWNER_VIOLATION'


class Unavailable(MedilinkError):
    """Raised when a collaborator (store, cache) fails transiently."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = 'UNAVAILABLE'


class ValidationFailed(MedilinkError):
    """Raised when input validation fails."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'VALIDATION_ERROR'


class RateLimited(MedilinkError):
    """Raised when an organization exceeds a mutation rate limit."""
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_code = 'RATE_LIMITED'


# DRF default codes mapped onto the Medilink taxonomy
DRF_CODE_MAP = {
    'not_authenticated': 'UNAUTHENTICATED',
    'authentication_failed': 'UNAUTHENTICATED',
    'permission_denied': 'FORBIDDEN',
    'not_found': 'NOT_FOUND',
    'invalid': 'VALIDATION_ERROR',
    'parse_error': 'VALIDATION_ERROR',
    'method_not_allowed': 'METHOD_NOT_ALLOWED',
    'not_acceptable': 'NOT_ACCEPTABLE',
    'unsupported_media_type': 'UNSUPPORTED_MEDIA_TYPE',
    'throttled': 'RATE_LIMITED',
}


def _error_body(code, message, details, request_id):
    return {
        'error': {
            'code': code,
            'message': message,
            'details': details or {},
        },
        'request_id': request_id,
    }


def _drf_error_code(exc):
    codes = exc.get_codes()
    if isinstance(codes, str):
        return DRF_CODE_MAP.get(codes, codes.upper())
    # Field-level serializer errors
    return DRF_CODE_MAP.get(exc.default_code, 'VALIDATION_ERROR')


def _drf_error_message(exc):
    detail = exc.detail
    if isinstance(detail, (dict, list)):
        return 'Invalid request'
    return str(detail)


def custom_exception_handler(exc, context):
    """
    Render every error as {"error": {code, message, details}, "request_id"}.
    """
    request = context.get('request')
    request_id = getattr(request, 'request_id', None) if request else None
    view = context.get('view')

    if isinstance(exc, DatabaseError):
        logger.error(
            "Database error while handling request",
            extra={
                'request_id': request_id,
                'path': request.path if request else None,
                'view': view.__class__.__name__ if view else None,
            },
            exc_info=True
        )
        exc = Unavailable('The data store is temporarily unavailable')

    if isinstance(exc, Ratelimited):
        # Subclass of Django's PermissionDenied; must not fall through to FORBIDDEN
        from apps.core.logging import SecurityLogger
        from apps.core.rate_limiting import RETRY_AFTER_SECONDS, organization_key

        if request is not None:
            SecurityLogger.log_rate_limit_exceeded(
                request.path,
                organization_key(None, request),
                ip_address=request.META.get('REMOTE_ADDR'),
            )
        exc = RateLimited(
            'Too many requests for this organization, try again later',
            details={'retry_after': RETRY_AFTER_SECONDS}
        )

    if isinstance(exc, DjangoValidationError):
        # Malformed filter values reaching the ORM
        exc = ValidationFailed('Invalid request parameters', details={'errors': exc.messages})

    if isinstance(exc, MedilinkError):
        log_method = logger.error if exc.status_code >= 500 else logger.info
        log_method(
            f"API rejection: {exc.code}",
            extra={
                'request_id': request_id,
                'error_code': exc.code,
                'path': request.path if request else None,
                'method': request.method if request else None,
            }
        )
        response = Response(
            _error_body(exc.code, exc.message, exc.details, request_id),
            status=exc.status_code
        )
        if isinstance(exc, Unauthenticated):
            response['WWW-Authenticate'] = 'Bearer'
        elif isinstance(exc, RateLimited):
            response['Retry-After'] = str(exc.details['retry_after'])
        return response

    # Let DRF translate its own exceptions (and Http404 / PermissionDenied) first
    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(exc, APIException):
            code = _drf_error_code(exc)
            message = _drf_error_message(exc)
            details = exc.detail if isinstance(exc.detail, (dict, list)) else {}
        else:
            code = 'NOT_FOUND' if response.status_code == 404 else 'FORBIDDEN'
            message = str(response.data.get('detail', '')) if isinstance(response.data, dict) else ''
            details = {}
        if isinstance(details, list):
            details = {'non_field_errors': details}
        response.data = _error_body(code, message, details, request_id)
        return response

    logger.error(
        f"Unhandled API exception: {exc.__class__.__name__}",
        extra={
            'request_id': request_id,
            'path': request.path if request else None,
            'method': request.method if request else None,
        },
        exc_info=exc
    )

    from apps.core.sentry_utils import capture_exception
    capture_exception(exc, request={'request_id': request_id})

    return Response(
        _error_body('INTERNAL_ERROR', 'An unexpected error occurred', {}, request_id),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
