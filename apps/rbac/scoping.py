"""
Tenant scoping for reads and the mutation gate used by every service.

Resources of another tenant are reported as missing, never as forbidden,
so their existence does not leak across tenants.
"""
import logging
from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from django.db.models import Q

from apps.core.exceptions import Forbidden, NotFound
from apps.core.logging import SecurityLogger
from apps.rbac.permissions import can_mutate_tenant_resource
from apps.rbac.roles import PlatformRole

logger = logging.getLogger(__name__)


def tenant_filter(actor, field='tenant_id'):
    """Q object restricting a queryset to the actor's tenant (empty for platform roles)."""
    if actor.is_platform:
        return Q()
    return Q(**{field: actor.require_tenant()})


def scope_queryset(queryset, actor, visible=None):
    """
    Restrict queryset to what actor may see.

    Args:
        queryset: Base queryset of a tenant-owned model
        actor: Acting session
        visible: Q object describing visibility for non-platform actors
            (defaults to tenant_id equality)
    """
    if actor.is_platform:
        return queryset
    if visible is None:
        visible = tenant_filter(actor)
    return queryset.filter(visible)


def scoped_get(queryset, actor, pk, resource_type, visible=None):
    """
    Fetch one object visible to actor or raise NotFound.

    Raises:
        NotFound: object missing, malformed id, or owned by another tenant
    """
    try:
        return scope_queryset(queryset, actor, visible).get(pk=pk)
    except (ObjectDoesNotExist, DjangoValidationError, ValueError):
        pass

    if not actor.is_platform:
        try:
            exists_elsewhere = queryset.filter(pk=pk).exists()
        except (DjangoValidationError, ValueError):
            exists_elsewhere = False
        if exists_elsewhere:
            SecurityLogger.log_cross_tenant_access(actor, resource_type, pk)

    raise NotFound(
        f"{resource_type.replace('_', ' ').capitalize()} not found",
        details={'resource_type': resource_type}
    )


def authorize_mutation(actor, tenant_id, action, required_roles=None,
                       resource_type=None, resource_id=None):
    """
    Gate a tenant-scoped mutation.

    Raises:
        NotFound: actor acts within another tenant
        Forbidden: PLATFORM_ADMIN_ONLY for platform support,
            INSUFFICIENT_ROLE when the org role is too low,
            TENANT_SUSPENDED when the actor's organization is suspended
    """
    if can_mutate_tenant_resource(actor, tenant_id, required_roles):
        if actor.is_platform:
            SecurityLogger.log_platform_override(actor, action, tenant_id=tenant_id, resource_id=resource_id)
            return
        _ensure_tenant_not_suspended(actor, tenant_id, action)
        return

    if actor.platform_role == PlatformRole.PLATFORM_SUPPORT:
        SecurityLogger.log_permission_denied(actor, action, 'PLATFORM_ADMIN_ONLY', resource_type, resource_id)
        raise Forbidden("Platform support has read-only access", code='PLATFORM_ADMIN_ONLY')

    if actor.tenant_id is None or str(actor.tenant_id) != str(tenant_id):
        if resource_id is not None:
            SecurityLogger.log_cross_tenant_access(actor, resource_type or 'resource', resource_id)
        raise NotFound(
            f"{(resource_type or 'resource').replace('_', ' ').capitalize()} not found",
            details={'resource_type': resource_type}
        )

    SecurityLogger.log_permission_denied(actor, action, 'INSUFFICIENT_ROLE', resource_type, resource_id)
    raise Forbidden(
        "Your role does not allow this operation",
        code='INSUFFICIENT_ROLE',
        details={'required_roles': sorted(str(role) for role in required_roles or ())}
    )


def _ensure_tenant_not_suspended(actor, tenant_id, action):
    from apps.tenants.models import Tenant

    status = Tenant.objects.filter(id=tenant_id).values_list('lifecycle_status', flat=True).first()
    if status == Tenant.LifecycleStatus.SUSPENDED:
        SecurityLogger.log_permission_denied(actor, action, 'TENANT_SUSPENDED', 'tenant', tenant_id)
        raise Forbidden(
            "This organization is suspended",
            code='TENANT_SUSPENDED'
        )
