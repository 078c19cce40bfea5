"""
Tests for PII masking, JSON log formatting and security events.
"""
import json
import logging
from unittest import mock

from apps.core.logging import JSONFormatter, PIIMasker, SecurityLogger
from apps.rbac.session import Actor


class TestPIIMasker:

    def test_masks_emails_in_text(self):
        assert PIIMasker.mask_text('added nurse@bachmai.test') == 'added n****@bachmai.test'

    def test_masks_bearer_tokens(self):
        assert 'eyJhbGciOi' not in PIIMasker.mask_text('Authorization: Bearer eyJhbGciOi.abc.def')

    def test_masks_sensitive_fields(self):
        masked = PIIMasker.mask_dict({
            'owner_email': 'founder@hue.test',
            'nested': {'session_token': 'abc'},
            'tenant_id': 't-1',
        })
        assert masked == {
            'owner_email': '********',
            'nested': {'session_token': '********'},
            'tenant_id': 't-1',
        }


class TestJSONFormatter:

    def _record(self, msg, **extra):
        record = logging.LogRecord('apps.test', logging.INFO, __file__, 1, msg, None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_extra_fields_included(self):
        output = json.loads(JSONFormatter().format(self._record('Member added', tenant_id='t-1', role='admin')))
        assert output['message'] == 'Member added'
        assert output['tenant_id'] == 't-1'
        assert output['role'] == 'admin'
        assert output['level'] == 'INFO'

    def test_pii_masked(self):
        output = json.loads(JSONFormatter().format(self._record('Invite for ops@medilink.test', email='ops@medilink.test')))
        assert 'ops@medilink.test' not in json.dumps(output)

    def test_unserializable_extra_stringified(self):
        output = json.loads(JSONFormatter().format(self._record('x', actor=object())))
        assert isinstance(output['actor'], str)


class TestSecurityLogger:

    def test_permission_denied_logged(self):
        actor = Actor(user_id='u-1', tenant_id='t-1', org_role='member')
        with mock.patch.object(logging.getLogger('security'), 'warning') as warning:
            SecurityLogger.log_permission_denied(actor, 'equipment.created', 'INSUFFICIENT_ROLE', 'equipment')
        extra = warning.call_args.kwargs['extra']
        assert extra['event_type'] == 'permission_denied'
        assert extra['code'] == 'INSUFFICIENT_ROLE'
        assert extra['actor_tenant_id'] == 't-1'

    def test_critical_events_reach_sentry(self):
        with mock.patch('apps.core.logging.sentry_sdk.capture_message') as capture:
            SecurityLogger.log_event('audit_write_failed', level='error', action='x')
        capture.assert_called_once()

    def test_routine_events_stay_local(self):
        with mock.patch('apps.core.logging.sentry_sdk.capture_message') as capture:
            SecurityLogger.log_event('cross_tenant_access', resource_type='equipment', resource_id='e-1')
        capture.assert_not_called()
