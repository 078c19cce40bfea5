"""
Organization lifecycle service.

Handles:
- Organization creation with the creator as owner
- Switching the active organization of a session
- Cached tenant-kind lookups for the routing guard
- Session context summaries
"""
import logging
from typing import Optional, Tuple

from django.conf import settings
from django.core.cache import cache
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction
from django.utils.text import slugify

from apps.core.exceptions import NotFound, Unavailable, ValidationFailed
from apps.core.notifications import notify_on_commit
from apps.rbac.models import AuditLog, Membership, User
from apps.rbac.roles import OrgRole
from apps.rbac.session import Actor, SessionResolver
from apps.tenants.models import ProviderProfile, Tenant

logger = logging.getLogger(__name__)


class TenantService:
    """
    Service for organization lifecycle and session context.
    """

    CACHE_KEY_KIND = 'tenant_kind:{tenant_id}'

    @staticmethod
    def unique_slug(name: str) -> str:
        """Derive a unique slug from an organization name."""
        base_slug = slugify(name)[:200] or 'organization'
        slug = base_slug
        counter = 1
        while Tenant.objects.filter(slug=slug).exists():
            slug = f"{base_slug}-{counter}"
            counter += 1
        return slug

    @staticmethod
    def validate_new_tenant(name: str, kind: str):
        if not name or not name.strip():
            raise ValidationFailed("Organization name is required", details={'field': 'name'})
        if kind not in Tenant.Kind.values:
            raise ValidationFailed(
                "Organization kind must be 'hospital' or 'provider'",
                details={'field': 'kind', 'allowed': Tenant.Kind.values}
            )

    @classmethod
    def build_tenant(cls, name: str, kind: str) -> Tenant:
        """
        Create a trial organization and, for providers, its empty profile.

        Caller owns the transaction and the audit entry.
        """
        cls.validate_new_tenant(name, kind)
        name = name.strip()
        tenant = Tenant.objects.create(
            name=name,
            slug=cls.unique_slug(name),
            kind=kind,
            lifecycle_status=Tenant.LifecycleStatus.TRIAL,
        )
        if kind == Tenant.Kind.PROVIDER:
            ProviderProfile.objects.create(tenant=tenant, display_name=name)
        return tenant

    @classmethod
    @transaction.atomic
    def create_tenant(cls, actor: Actor, name: str, kind: str) -> Tuple[Tenant, str]:
        """
        Onboard a new organization with the acting user as owner.

        Creates the tenant, the owner membership and an audit entry in one
        transaction, and returns a fresh session token scoped to the new
        organization.

        Args:
            actor: Acting session (tenant not required)
            name: Organization display name
            kind: 'hospital' or 'provider'

        Returns:
            Tuple of (Tenant, session token)
        """
        if not User.objects.active().filter(id=actor.user_id).exists():
            raise NotFound("User not found", details={'resource_type': 'user'})

        tenant = cls.build_tenant(name, kind)
        Membership.objects.create(tenant=tenant, user_id=actor.user_id, role=OrgRole.OWNER)

        AuditLog.append(
            action='organization.created',
            resource_type='tenant',
            resource_id=tenant.id,
            actor=actor,
            tenant_id=tenant.id,
            new_values={
                'name': tenant.name,
                'kind': tenant.kind,
                'lifecycle_status': tenant.lifecycle_status,
            },
        )
        notify_on_commit('organization.created', tenant.id, {'kind': tenant.kind})

        logger.info(
            "Organization created",
            extra={'tenant_id': str(tenant.id), 'kind': tenant.kind, 'user_id': actor.user_id}
        )

        token = SessionResolver.issue(
            actor.user_id,
            tenant_id=tenant.id,
            org_role=OrgRole.OWNER,
            platform_role=actor.platform_role,
        )
        return tenant, token

    @classmethod
    def switch_tenant(cls, actor: Actor, tenant_id) -> Tuple[Membership, str]:
        """
        Issue a token whose active organization is tenant_id.

        Raises:
            NotFound: the user is not a member of tenant_id
        """
        try:
            membership = (
                Membership.objects.select_related('tenant')
                .filter(tenant_id=tenant_id, user_id=actor.user_id)
                .first()
            )
        except (ValueError, TypeError, DjangoValidationError):
            membership = None
        except DatabaseError as exc:
            raise Unavailable("Membership lookup failed") from exc

        if membership is None:
            raise NotFound("Organization not found", details={'resource_type': 'tenant'})

        token = SessionResolver.issue(
            actor.user_id,
            tenant_id=membership.tenant_id,
            org_role=membership.role,
            platform_role=actor.platform_role,
        )
        logger.info(
            "Active organization switched",
            extra={'tenant_id': str(membership.tenant_id), 'user_id': actor.user_id}
        )
        return membership, token

    @classmethod
    def get_tenant_kind(cls, tenant_id) -> Optional[str]:
        """
        Return the organization kind, or None when the tenant does not exist.

        Raises:
            Unavailable: the cache or the database could not be read
        """
        key = cls.CACHE_KEY_KIND.format(tenant_id=tenant_id)
        try:
            kind = cache.get(key)
        except Exception as exc:
            logger.warning("Tenant kind cache read failed", extra={'tenant_id': str(tenant_id)})
            raise Unavailable("Organization lookup failed") from exc
        if kind is not None:
            return kind

        try:
            kind = Tenant.objects.filter(id=tenant_id).values_list('kind', flat=True).first()
        except DatabaseError as exc:
            logger.warning("Tenant kind lookup failed", extra={'tenant_id': str(tenant_id)})
            raise Unavailable("Organization lookup failed") from exc

        if kind is not None:
            try:
                cache.set(key, kind, timeout=settings.TENANT_KIND_CACHE_TTL)
            except Exception:
                logger.warning("Tenant kind cache write failed", extra={'tenant_id': str(tenant_id)})
        return kind

    @classmethod
    def get_session_context(cls, actor: Actor) -> dict:
        """Summarize the session: identity, active organization and memberships."""
        user = User.objects.filter(id=actor.user_id).first()
        memberships = (
            Membership.objects.for_user(actor.user_id)
            .select_related('tenant')
            .order_by('tenant__name')
        )

        active = None
        if actor.tenant_id:
            tenant = Tenant.objects.filter(id=actor.tenant_id).first()
            if tenant is not None:
                active = {
                    'id': str(tenant.id),
                    'name': tenant.name,
                    'kind': tenant.kind,
                    'lifecycle_status': tenant.lifecycle_status,
                }

        return {
            'user': {
                'id': actor.user_id,
                'email': user.email if user else None,
                'name': user.name if user else None,
            },
            'active_tenant': active,
            'org_role': actor.org_role,
            'platform_role': actor.platform_role,
            'memberships': [
                {
                    'tenant_id': str(m.tenant_id),
                    'tenant_name': m.tenant.name,
                    'tenant_kind': m.tenant.kind,
                    'role': m.role,
                }
                for m in memberships
            ],
        }
