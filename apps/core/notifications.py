"""
Fire-and-forget notifications emitted after a mutation commits.
"""
import logging
from functools import partial
from django.db import transaction

logger = logging.getLogger(__name__)


def _enqueue(event, tenant_id, payload):
    from apps.core.tasks import send_notification

    try:
        send_notification.delay(event, tenant_id=tenant_id, payload=payload)
    except Exception:
        # Broker outages never undo a committed mutation
        logger.warning(
            "Failed to enqueue notification",
            extra={'event': event, 'tenant_id': tenant_id},
            exc_info=True
        )


def notify_on_commit(event, tenant_id=None, payload=None):
    """
    Schedule a notification once the surrounding transaction commits.

    Nothing is sent if the transaction rolls back. Outside of a transaction
    the notification is enqueued immediately.
    """
    transaction.on_commit(
        partial(
            _enqueue,
            event,
            str(tenant_id) if tenant_id else None,
            payload or {},
        )
    )
