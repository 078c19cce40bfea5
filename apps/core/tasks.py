"""
Base Celery task class and the outbound notification task.
"""
import logging
import requests
from celery import Task, shared_task
from django.conf import settings
from apps.core.logging import PIIMasker
from apps.core.sentry_utils import add_breadcrumb, capture_exception

logger = logging.getLogger(__name__)


class LoggedTask(Task):
    """
    Base task class with logging and Sentry integration.

    Logs failures and retries with masked arguments and forwards
    failures to Sentry with the task context attached.
    """

    def __call__(self, *args, **kwargs):
        task_id = self.request.id
        add_breadcrumb(
            category="task",
            message=f"Task started: {self.name}",
            data={'task_id': task_id},
        )
        try:
            return super().__call__(*args, **kwargs)
        except Exception as exc:
            logger.error(
                f"Task failed: {self.name}",
                extra={
                    'task_id': task_id,
                    'task_name': self.name,
                    'exception': str(exc),
                    'task_kwargs': self._sanitize_kwargs(kwargs),
                },
                exc_info=True
            )
            capture_exception(
                exc,
                task={'task_id': task_id, 'task_name': self.name}
            )
            raise

    def on_retry(self, exc, task_id, args, kwargs, einfo):
        logger.warning(
            f"Task retry: {self.name} (attempt {self.request.retries}/{self.max_retries})",
            extra={
                'task_id': task_id,
                'task_name': self.name,
                'retry_count': self.request.retries,
                'exception': str(exc),
            }
        )
        super().on_retry(exc, task_id, args, kwargs, einfo)

    def _sanitize_kwargs(self, kwargs):
        if not kwargs:
            return {}
        return PIIMasker.mask_dict(dict(kwargs))


@shared_task(
    bind=True,
    base=LoggedTask,
    max_retries=5,
    autoretry_for=(requests.RequestException,),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True,
    ignore_result=True,
)
def send_notification(self, event: str, tenant_id: str = None, payload: dict = None):
    """
    Deliver a domain event to the notification webhook.

    Transport errors are retried with exponential backoff; the mutation
    that produced the event has already committed and is never affected.

    Args:
        event: Event name (e.g., 'service_request.status_changed')
        tenant_id: Tenant the event belongs to (None for platform-wide)
        payload: JSON-serializable event body
    """
    url = settings.NOTIFICATION_WEBHOOK_URL
    if not url:
        logger.debug(
            "Notification webhook not configured, skipping delivery",
            extra={'event': event, 'tenant_id': tenant_id}
        )
        return None

    response = requests.post(
        url,
        json={
            'event': event,
            'tenant_id': tenant_id,
            'payload': payload or {},
        },
        timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
    )
    response.raise_for_status()

    logger.info(
        "Notification delivered",
        extra={
            'event': event,
            'tenant_id': tenant_id,
            'status_code': response.status_code,
        }
    )
    return response.status_code
