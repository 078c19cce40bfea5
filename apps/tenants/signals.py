"""
Signals for tenant lifecycle events.
"""
import logging
from django.core.cache import cache
from django.db.models.signals import post_save
from django.dispatch import receiver

from apps.tenants.models import Tenant

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Tenant)
def invalidate_tenant_kind_cache(sender, instance, created, **kwargs):
    """
    Drop the cached tenant kind whenever a tenant row is written.

    The routing guard reads the kind through this cache.
    """
    if created:
        return
    from apps.tenants.services import TenantService

    try:
        cache.delete(TenantService.CACHE_KEY_KIND.format(tenant_id=instance.id))
    except Exception:
        logger.warning(
            "Failed to invalidate tenant kind cache",
            extra={'tenant_id': str(instance.id)},
            exc_info=True
        )
