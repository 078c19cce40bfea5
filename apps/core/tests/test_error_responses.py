"""
Tests for the error taxonomy and the API exception handler.
"""
from unittest import mock

import pytest
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from rest_framework.exceptions import NotAuthenticated, PermissionDenied, ValidationError
from rest_framework.test import APIRequestFactory

from apps.core.exceptions import (
    Forbidden,
    InvalidTransition,
    LastOwnerViolation,
    NotFound,
    custom_exception_handler,
)


def _context(request_id='req-1'):
    request = APIRequestFactory().get('/v1/anything')
    request.request_id = request_id
    return {'request': request, 'view': None}


class TestCustomExceptionHandler:

    @pytest.mark.parametrize('exc,status_code,code', [
        (Forbidden('No', code='INSUFFICIENT_ROLE'), 403, 'INSUFFICIENT_ROLE'),
        (NotFound('Gone'), 404, 'NOT_FOUND'),
        (LastOwnerViolation('Keep one'), 409, 'LAST_OWNER_VIOLATION'),
        (InvalidTransition('payment', 'completed', 'pending'), 409, 'INVALID_TRANSITION'),
    ])
    def test_domain_errors(self, exc, status_code, code):
        response = custom_exception_handler(exc, _context())
        assert response.status_code == status_code
        assert response.data['error']['code'] == code
        assert response.data['request_id'] == 'req-1'

    def test_invalid_transition_details(self):
        response = custom_exception_handler(InvalidTransition('dispute', 'open', 'resolved'), _context())
        assert response.data['error']['details'] == {
            'entity_kind': 'dispute',
            'from_status': 'open',
            'attempted_to': 'resolved',
        }

    def test_database_error_is_unavailable(self):
        response = custom_exception_handler(DatabaseError('connection lost'), _context())
        assert response.status_code == 503
        assert response.data['error']['code'] == 'UNAVAILABLE'
        assert 'connection lost' not in response.data['error']['message']

    def test_django_validation_error(self):
        response = custom_exception_handler(DjangoValidationError('“x” is not a valid date'), _context())
        assert response.status_code == 400
        assert response.data['error']['code'] == 'VALIDATION_ERROR'

    def test_serializer_errors_keep_field_details(self):
        exc = ValidationError({'role': ['"root" is not a valid choice.']})
        response = custom_exception_handler(exc, _context())
        assert response.status_code == 400
        assert response.data['error']['code'] == 'VALIDATION_ERROR'
        assert 'role' in response.data['error']['details']

    def test_drf_auth_and_permission_codes(self):
        assert custom_exception_handler(NotAuthenticated(), _context()).data['error']['code'] == 'UNAUTHENTICATED'
        denied = PermissionDenied('Nope', code='PLATFORM_ROLE_REQUIRED')
        assert custom_exception_handler(denied, _context()).data['error']['code'] == 'PLATFORM_ROLE_REQUIRED'

    def test_unexpected_error_is_opaque(self):
        with mock.patch('apps.core.sentry_utils.capture_exception') as capture:
            response = custom_exception_handler(KeyError('secret'), _context())
        assert response.status_code == 500
        assert response.data['error'] == {
            'code': 'INTERNAL_ERROR',
            'message': 'An unexpected error occurred',
            'details': {},
        }
        capture.assert_called_once()


@pytest.mark.django_db
class TestHealthCheck:

    def test_healthy(self, api_client):
        response = api_client.get('/v1/health/')
        assert response.status_code == 200
        assert response.json()['database'] == 'healthy'
