"""
Tests for post-commit notifications and the webhook delivery task.
"""
from unittest import mock

import pytest
from django.db import transaction

from apps.core.notifications import notify_on_commit
from apps.core.tasks import send_notification


@pytest.mark.django_db
class TestNotifyOnCommit:

    def test_enqueued_after_commit(self, django_capture_on_commit_callbacks):
        with mock.patch('apps.core.tasks.send_notification.delay') as delay:
            with django_capture_on_commit_callbacks(execute=True):
                notify_on_commit('dispute.created', 'tenant-1', {'dispute_id': 'd-1'})
        delay.assert_called_once_with('dispute.created', tenant_id='tenant-1', payload={'dispute_id': 'd-1'})

    def test_not_enqueued_on_rollback(self, django_capture_on_commit_callbacks):
        with mock.patch('apps.core.tasks.send_notification.delay') as delay:
            with django_capture_on_commit_callbacks(execute=True) as callbacks:
                try:
                    with transaction.atomic():
                        notify_on_commit('dispute.created', 'tenant-1')
                        raise RuntimeError('abort')
                except RuntimeError:
                    pass
        assert callbacks == []
        delay.assert_not_called()

    def test_broker_failure_is_swallowed(self, django_capture_on_commit_callbacks):
        with mock.patch('apps.core.tasks.send_notification.delay', side_effect=ConnectionError('broker down')):
            with django_capture_on_commit_callbacks(execute=True):
                notify_on_commit('payment.created', None)


class TestSendNotification:

    def test_skipped_without_webhook(self, settings):
        settings.NOTIFICATION_WEBHOOK_URL = None
        with mock.patch('apps.core.tasks.requests.post') as post:
            assert send_notification.apply(args=('payment.created',)).get() is None
        post.assert_not_called()

    def test_posts_event(self, settings):
        settings.NOTIFICATION_WEBHOOK_URL = 'https://hooks.example.test/medilink'
        with mock.patch('apps.core.tasks.requests.post') as post:
            post.return_value.status_code = 202
            result = send_notification.apply(
                args=('equipment.status_changed',),
                kwargs={'tenant_id': 't-1', 'payload': {'new_status': 'damaged'}},
            ).get()

        assert result == 202
        post.assert_called_once_with(
            'https://hooks.example.test/medilink',
            json={'event': 'equipment.status_changed', 'tenant_id': 't-1', 'payload': {'new_status': 'damaged'}},
            timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
        )

