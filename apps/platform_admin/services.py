"""
Cross-tenant query layer and operator mutations.

Platform admins and platform support read across every organization;
only platform admins write. Listings are enriched with the names of the
organizations involved, and service requests carry a bottleneck flag
computed at query time.
"""
import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import transaction
from django.db.models import BooleanField, Case, Count, F, Q, Value, When
from django.db.models.functions import Coalesce
from django.utils import timezone

from apps.core.exceptions import Forbidden, InvalidTransition, NotFound, ValidationFailed
from apps.core.logging import SecurityLogger
from apps.core.notifications import notify_on_commit
from apps.rbac.models import AuditLog, Membership, User
from apps.rbac.roles import OrgRole, PlatformRole
from apps.service_requests.models import Dispute, ServiceRequest
from apps.tenants.models import ProviderProfile, Tenant
from apps.tenants.services import TenantService
from apps.workflows.engine import WorkflowEngine
from apps.workflows.transitions import DisputeStatus, EntityKind, ServiceRequestStatus, is_terminal

logger = logging.getLogger(__name__)

REFUND_RESOLUTIONS = frozenset({Dispute.Resolution.REFUND.value, Dispute.Resolution.PARTIAL_REFUND.value})


def bottleneck_cutoff(now=None):
    """Status changes at or before this instant make an open request a bottleneck."""
    return (now or timezone.now()) - timedelta(days=settings.BOTTLENECK_THRESHOLD_DAYS)


def is_bottleneck(service_request, now=None):
    if service_request.status in ServiceRequest.CLOSED_STATUSES:
        return False
    changed_at = service_request.status_changed_at or service_request.created_at
    return changed_at <= bottleneck_cutoff(now)


class PlatformAdminService:
    """
    Service for platform operators.
    """

    @staticmethod
    def require_staff(actor):
        if actor is None or not actor.is_platform:
            raise Forbidden("This operation is available to platform staff only", code='PLATFORM_ROLE_REQUIRED')

    @staticmethod
    def require_admin(actor, action, tenant_id=None, resource_type=None, resource_id=None):
        """
        Raises:
            Forbidden: PLATFORM_ADMIN_ONLY for anyone but platform admins
        """
        if actor is None or actor.platform_role != PlatformRole.PLATFORM_ADMIN:
            if actor is not None:
                SecurityLogger.log_permission_denied(actor, action, 'PLATFORM_ADMIN_ONLY', resource_type, resource_id)
            raise Forbidden("Only platform admins can perform this operation", code='PLATFORM_ADMIN_ONLY')
        SecurityLogger.log_platform_override(actor, action, tenant_id=tenant_id, resource_id=resource_id)

    # Queries

    @classmethod
    def list_service_requests(cls, actor, status=None, hospital_id=None, provider_id=None,
                              created_from=None, created_to=None, bottleneck_only=False, now=None):
        """
        All service requests, enriched with hospital and provider names.

        Args:
            created_from / created_to: inclusive date bounds on creation
            bottleneck_only: keep only flagged requests
        """
        cls.require_staff(actor)
        queryset = (
            ServiceRequest.objects
            .select_related('tenant', 'provider')
            .annotate(
                hospital_name=F('tenant__name'),
                provider_name=F('provider__display_name'),
                last_status_change=Coalesce('status_changed_at', 'created_at'),
            )
            .annotate(
                is_bottleneck=Case(
                    When(
                        ~Q(status__in=ServiceRequest.CLOSED_STATUSES)
                        & Q(last_status_change__lte=bottleneck_cutoff(now)),
                        then=Value(True),
                    ),
                    default=Value(False),
                    output_field=BooleanField(),
                )
            )
        )
        if status:
            queryset = queryset.filter(status=status)
        if hospital_id:
            queryset = queryset.filter(tenant_id=hospital_id)
        if provider_id:
            queryset = queryset.filter(provider_id=provider_id)
        if created_from:
            queryset = queryset.filter(created_at__date__gte=created_from)
        if created_to:
            queryset = queryset.filter(created_at__date__lte=created_to)
        if bottleneck_only:
            queryset = queryset.filter(is_bottleneck=True)
        return queryset.order_by('-created_at')

    @classmethod
    def list_escalated_disputes(cls, actor):
        cls.require_staff(actor)
        return (
            Dispute.objects
            .filter(status=DisputeStatus.ESCALATED)
            .select_related('tenant', 'service_request', 'service_request__provider')
            .annotate(
                hospital_name=F('tenant__name'),
                provider_name=F('service_request__provider__display_name'),
                service_request_description=F('service_request__description'),
            )
            .order_by('status_changed_at', 'created_at')
        )

    @classmethod
    def get_dispute_detail(cls, actor, dispute_id):
        """
        Dispute with its service request, provider and arbitration history.

        Raises:
            NotFound: no such dispute
        """
        cls.require_staff(actor)
        dispute = (
            Dispute.objects
            .select_related('tenant', 'service_request', 'service_request__provider')
            .filter(id=dispute_id)
            .first()
        )
        if dispute is None:
            raise NotFound("Dispute not found", details={'resource_type': 'dispute'})

        history = (
            AuditLog.objects.by_resource(EntityKind.DISPUTE.value, dispute.id)
            .select_related('actor')
            .order_by('created_at')
        )
        return {
            'dispute': dispute,
            'service_request': dispute.service_request,
            'provider': dispute.service_request.provider,
            'arbitration_history': list(history),
        }

    @classmethod
    def list_tenants(cls, actor, kind=None, lifecycle_status=None, search=None):
        cls.require_staff(actor)
        queryset = Tenant.objects.annotate(member_count=Count('memberships'))
        if kind:
            queryset = queryset.filter(kind=kind)
        if lifecycle_status:
            queryset = queryset.filter(lifecycle_status=lifecycle_status)
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(slug__icontains=search))
        return queryset.order_by('name')

    @classmethod
    def list_audit_log(cls, actor, tenant_id=None, actor_id=None, action=None, resource_type=None,
                       resource_id=None, date_from=None, date_to=None, search=None):
        cls.require_staff(actor)
        queryset = AuditLog.objects.select_related('actor', 'tenant')
        if tenant_id:
            queryset = queryset.for_tenant(tenant_id)
        if actor_id:
            queryset = queryset.for_actor(actor_id)
        if action:
            queryset = queryset.by_action(action)
        if resource_type:
            queryset = queryset.by_resource(resource_type, resource_id)
        elif resource_id:
            queryset = queryset.filter(resource_id=str(resource_id))
        if date_from:
            queryset = queryset.filter(created_at__date__gte=date_from)
        if date_to:
            queryset = queryset.filter(created_at__date__lte=date_to)
        if search:
            queryset = queryset.search(search)
        return queryset.order_by('-created_at')

    # Mutations

    @staticmethod
    def _parse_refund(amount):
        if amount is None or amount == '':
            return None
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, TypeError, ValueError):
            value = None
        if value is None or not value.is_finite() or value <= 0:
            raise ValidationFailed("Refund amount must be a positive number", details={'field': 'refund_amount'})
        return value

    @classmethod
    @transaction.atomic
    def resolve_dispute(cls, actor, dispute_id, resolution, reason, refund_amount=None):
        """
        Record the platform ruling on a dispute.

        Investigating disputes move to resolved. Escalated disputes are
        terminal and only receive the ruling fields.

        Raises:
            Forbidden: PLATFORM_ADMIN_ONLY
            NotFound: no such dispute
            InvalidTransition: the dispute already carries a ruling or is in
                any other status
        """
        action = 'admin.dispute.arbitrated'
        cls.require_admin(actor, action, resource_type='dispute', resource_id=dispute_id)

        if resolution not in Dispute.Resolution.values:
            raise ValidationFailed(
                "Unknown resolution",
                details={'field': 'resolution', 'allowed': Dispute.Resolution.values}
            )
        if not (reason or '').strip():
            raise ValidationFailed("A reason is required", details={'field': 'reason'})
        refund = cls._parse_refund(refund_amount)
        if refund is None and resolution == Dispute.Resolution.PARTIAL_REFUND:
            raise ValidationFailed(
                "A partial refund needs a refund amount",
                details={'field': 'refund_amount'}
            )
        if refund is not None and resolution not in REFUND_RESOLUTIONS:
            raise ValidationFailed(
                "Refund amount only applies to refund rulings",
                details={'field': 'refund_amount'}
            )

        dispute = Dispute.objects.select_for_update().filter(id=dispute_id).first()
        if dispute is None:
            raise NotFound("Dispute not found", details={'resource_type': 'dispute'})

        if dispute.has_ruling:
            raise InvalidTransition(
                EntityKind.DISPUTE, dispute.status, DisputeStatus.RESOLVED,
                message="This dispute already has a ruling"
            )

        now = timezone.now()
        ruling = {
            'resolution': resolution,
            'resolution_notes': reason.strip(),
            'refund_amount': refund,
            'resolved_at': now,
        }

        if dispute.status == DisputeStatus.INVESTIGATING:
            dispute, _ = WorkflowEngine.apply_transition(
                dispute,
                DisputeStatus.RESOLVED,
                performed_by=actor,
                notes=reason.strip(),
                changes=ruling,
                audit_action=action,
            )
        elif dispute.status == DisputeStatus.ESCALATED:
            previous = {field: getattr(dispute, field) for field in ruling}
            for field, value in ruling.items():
                setattr(dispute, field, value)
            dispute.save(update_fields=[*ruling.keys(), 'updated_at'])
            AuditLog.append(
                action=action,
                resource_type=EntityKind.DISPUTE.value,
                resource_id=dispute.id,
                actor=actor,
                tenant_id=dispute.tenant_id,
                previous_values=previous,
                new_values=ruling,
            )
            notify_on_commit(action, dispute.tenant_id, {'dispute_id': str(dispute.id), 'resolution': resolution})
        else:
            raise InvalidTransition(EntityKind.DISPUTE, dispute.status, DisputeStatus.RESOLVED)

        logger.info(
            "Dispute arbitrated",
            extra={'dispute_id': str(dispute.id), 'tenant_id': str(dispute.tenant_id), 'resolution': resolution}
        )
        return dispute

    @classmethod
    @transaction.atomic
    def reassign_provider(cls, actor, service_request_id, provider_id, reason=''):
        """
        Assign a different provider to an open service request.

        Raises:
            Forbidden: PLATFORM_ADMIN_ONLY
            NotFound: unknown service request or provider profile
            InvalidTransition: the request is completed or terminal
        """
        action = 'admin.service_request.provider_reassigned'
        cls.require_admin(actor, action, resource_type='service_request', resource_id=service_request_id)

        service_request = ServiceRequest.objects.select_for_update().filter(id=service_request_id).first()
        if service_request is None:
            raise NotFound("Service request not found", details={'resource_type': 'service_request'})

        if service_request.status == ServiceRequestStatus.COMPLETED or is_terminal(EntityKind.SERVICE_REQUEST, service_request.status):
            raise InvalidTransition(
                EntityKind.SERVICE_REQUEST, service_request.status, service_request.status,
                message=f"Cannot reassign a service request in status '{service_request.status}'"
            )

        provider = ProviderProfile.objects.filter(id=provider_id).first()
        if provider is None:
            raise NotFound("Provider not found", details={'resource_type': 'provider'})

        previous_provider_id = str(service_request.provider_id) if service_request.provider_id else None
        service_request.provider = provider
        service_request.save(update_fields=['provider', 'updated_at'])

        AuditLog.append(
            action=action,
            resource_type=EntityKind.SERVICE_REQUEST.value,
            resource_id=service_request.id,
            actor=actor,
            tenant_id=service_request.tenant_id,
            previous_values={'provider_id': previous_provider_id},
            new_values={'provider_id': str(provider.id)},
            metadata={'reason': reason} if reason else None,
        )
        notify_on_commit(
            action,
            service_request.tenant_id,
            {'service_request_id': str(service_request.id), 'provider_id': str(provider.id)}
        )
        logger.info(
            "Provider reassigned",
            extra={
                'service_request_id': str(service_request.id),
                'previous_provider_id': previous_provider_id,
                'provider_id': str(provider.id),
            }
        )
        return service_request

    @staticmethod
    def _lock_tenant(tenant_id):
        tenant = Tenant.objects.select_for_update().filter(id=tenant_id).first()
        if tenant is None:
            raise NotFound("Organization not found", details={'resource_type': 'tenant'})
        return tenant

    @classmethod
    @transaction.atomic
    def suspend_tenant(cls, actor, tenant_id, reason=''):
        """
        Raises:
            InvalidTransition: the organization is already suspended
        """
        action = 'admin.tenant.suspended'
        cls.require_admin(actor, action, tenant_id=tenant_id, resource_type='tenant', resource_id=tenant_id)
        tenant = cls._lock_tenant(tenant_id)
        if tenant.is_suspended:
            raise InvalidTransition('tenant', tenant.lifecycle_status, Tenant.LifecycleStatus.SUSPENDED)

        previous_status = tenant.lifecycle_status
        tenant.lifecycle_status = Tenant.LifecycleStatus.SUSPENDED
        tenant.suspended_at = timezone.now()
        tenant.suspension_reason = reason or ''
        tenant.save(update_fields=['lifecycle_status', 'suspended_at', 'suspension_reason', 'updated_at'])

        AuditLog.append(
            action=action,
            resource_type='tenant',
            resource_id=tenant.id,
            actor=actor,
            tenant_id=tenant.id,
            previous_values={'lifecycle_status': previous_status},
            new_values={'lifecycle_status': tenant.lifecycle_status, 'reason': tenant.suspension_reason},
        )
        notify_on_commit(action, tenant.id, {'reason': tenant.suspension_reason})
        logger.info("Organization suspended", extra={'tenant_id': str(tenant.id)})
        return tenant

    @classmethod
    @transaction.atomic
    def reactivate_tenant(cls, actor, tenant_id):
        """
        Raises:
            InvalidTransition: the organization is not suspended
        """
        action = 'admin.tenant.reactivated'
        cls.require_admin(actor, action, tenant_id=tenant_id, resource_type='tenant', resource_id=tenant_id)
        tenant = cls._lock_tenant(tenant_id)
        if not tenant.is_suspended:
            raise InvalidTransition('tenant', tenant.lifecycle_status, Tenant.LifecycleStatus.ACTIVE)

        tenant.lifecycle_status = Tenant.LifecycleStatus.ACTIVE
        tenant.suspension_reason = ''
        tenant.save(update_fields=['lifecycle_status', 'suspension_reason', 'updated_at'])

        AuditLog.append(
            action=action,
            resource_type='tenant',
            resource_id=tenant.id,
            actor=actor,
            tenant_id=tenant.id,
            previous_values={'lifecycle_status': Tenant.LifecycleStatus.SUSPENDED.value},
            new_values={'lifecycle_status': tenant.lifecycle_status},
        )
        notify_on_commit(action, tenant.id)
        logger.info("Organization reactivated", extra={'tenant_id': str(tenant.id)})
        return tenant

    @classmethod
    @transaction.atomic
    def onboard_tenant(cls, actor, name, kind, owner_email):
        """
        Create a trial organization on behalf of a customer.

        The owner_email user becomes owner. An address with no user record
        gets one, and activates it on first sign-in through the auth
        provider; the invitation goes out as a notification.

        Raises:
            ValidationFailed: missing owner_email, or it names an inactive user
        """
        action = 'admin.tenant.onboarded'
        cls.require_admin(actor, action, resource_type='tenant')

        email = (owner_email or '').strip().lower()
        if not email:
            raise ValidationFailed("An owner email is required", details={'field': 'owner_email'})

        owner = User.objects.by_email(email)
        invited = owner is None
        if invited:
            owner = User.objects.create(email=email)
        elif not owner.is_active:
            raise ValidationFailed(
                "The owner account is deactivated",
                code='USER_INACTIVE',
                details={'field': 'owner_email'}
            )

        tenant = TenantService.build_tenant(name, kind)
        Membership.objects.create(tenant=tenant, user=owner, role=OrgRole.OWNER)

        AuditLog.append(
            action=action,
            resource_type='tenant',
            resource_id=tenant.id,
            actor=actor,
            tenant_id=tenant.id,
            new_values={
                'name': tenant.name,
                'kind': tenant.kind,
                'lifecycle_status': tenant.lifecycle_status,
                'owner_user_id': str(owner.id),
                'owner_email': owner.email,
            },
            metadata={'owner_invited': invited},
        )
        notify_on_commit(action, tenant.id, {'kind': tenant.kind})
        if invited:
            notify_on_commit(
                'organization.owner_invited',
                tenant.id,
                {
                    'email': owner.email,
                    'organization': tenant.name,
                    'sign_in_url': f"{settings.FRONTEND_URL}/sign-in",
                }
            )
        logger.info(
            "Organization onboarded",
            extra={'tenant_id': str(tenant.id), 'kind': tenant.kind, 'owner_invited': invited}
        )
        return tenant
