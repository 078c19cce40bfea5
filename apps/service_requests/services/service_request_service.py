"""
Service request lifecycle.

Handles:
- Creation by hospital organizations
- Party-restricted status changes (hospital side and assigned provider side)
- Cancellation and status history
"""
import logging

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.core.exceptions import Forbidden, NotFound, ValidationFailed
from apps.core.logging import SecurityLogger
from apps.core.notifications import notify_on_commit
from apps.equipment.models import Equipment
from apps.rbac.models import AuditLog
from apps.rbac.scoping import authorize_mutation, scope_queryset, scoped_get
from apps.service_requests.models import ServiceRequest
from apps.tenants.models import ProviderProfile, Tenant
from apps.workflows.engine import WorkflowEngine
from apps.workflows.models import StatusHistory
from apps.workflows.transitions import EntityKind, ServiceRequestStatus

logger = logging.getLogger(__name__)

HOSPITAL = 'hospital'
PROVIDER = 'provider'

# Target statuses each side of a service request may set
PARTY_TARGETS = {
    HOSPITAL: frozenset({
        ServiceRequestStatus.ACCEPTED.value,
        ServiceRequestStatus.CANCELLED.value,
        ServiceRequestStatus.DISPUTED.value,
    }),
    PROVIDER: frozenset({
        ServiceRequestStatus.QUOTED.value,
        ServiceRequestStatus.IN_PROGRESS.value,
        ServiceRequestStatus.COMPLETED.value,
    }),
}


def party_of(actor, service_request):
    """Return 'hospital', 'provider' or None for the actor's side of a request."""
    if actor.tenant_id is None:
        return None
    tenant_id = str(actor.tenant_id)
    if str(service_request.tenant_id) == tenant_id:
        return HOSPITAL
    provider = service_request.provider
    if provider is not None and str(provider.tenant_id) == tenant_id:
        return PROVIDER
    return None


def party_visibility(actor, prefix=''):
    """Q object for rows the actor sees as hospital or as assigned provider."""
    tenant_id = actor.require_tenant()
    return Q(**{f'{prefix}tenant_id': tenant_id}) | Q(**{f'{prefix}provider__tenant_id': tenant_id})


class ServiceRequestService:
    """
    Service for service request operations.
    """

    @staticmethod
    def _base_queryset():
        return ServiceRequest.objects.select_related('tenant', 'provider', 'equipment')

    @classmethod
    def list_service_requests(cls, actor, status=None, priority=None):
        queryset = scope_queryset(cls._base_queryset(), actor, visible=None if actor.is_platform else party_visibility(actor))
        if status:
            queryset = queryset.filter(status=status)
        if priority:
            queryset = queryset.filter(priority=priority)
        return queryset

    @classmethod
    def get_service_request(cls, actor, service_request_id):
        """
        Raises:
            NotFound: missing, or the actor is on neither side of the request
        """
        visible = None if actor.is_platform else party_visibility(actor)
        return scoped_get(cls._base_queryset(), actor, service_request_id, 'service_request', visible=visible)

    @classmethod
    @transaction.atomic
    def create_service_request(cls, actor, data):
        """
        Raise a service request from the actor's hospital organization.

        Args:
            actor: Acting session within a hospital organization
            data: Validated values (description, request_type, priority,
                optional equipment_id and provider_id)

        Raises:
            Forbidden: HOSPITAL_ONLY when the active organization is a provider
            NotFound: equipment of another organization, or unknown provider
        """
        tenant_id = actor.require_tenant()
        authorize_mutation(actor, tenant_id, 'service_request.created', resource_type='service_request')

        tenant = Tenant.objects.filter(id=tenant_id).first()
        if tenant is None:
            raise NotFound("Organization not found", details={'resource_type': 'tenant'})
        if tenant.kind != Tenant.Kind.HOSPITAL:
            raise Forbidden(
                "Only hospital organizations can create service requests",
                code='HOSPITAL_ONLY'
            )

        equipment = None
        equipment_id = data.get('equipment_id')
        if equipment_id:
            equipment = Equipment.objects.filter(id=equipment_id, tenant_id=tenant_id).first()
            if equipment is None:
                if Equipment.objects.filter(id=equipment_id).exists():
                    SecurityLogger.log_cross_tenant_access(actor, 'equipment', equipment_id)
                raise NotFound("Equipment not found", details={'resource_type': 'equipment'})

        provider = None
        provider_id = data.get('provider_id')
        if provider_id:
            provider = ProviderProfile.objects.filter(id=provider_id, is_accepting_requests=True).first()
            if provider is None:
                raise NotFound("Provider not found", details={'resource_type': 'provider'})

        description = (data.get('description') or '').strip()
        if not description:
            raise ValidationFailed("Description is required", details={'field': 'description'})

        service_request = ServiceRequest.objects.create(
            tenant=tenant,
            equipment=equipment,
            provider=provider,
            requested_by_id=actor.user_id,
            request_type=data.get('request_type') or ServiceRequest.RequestType.REPAIR,
            priority=data.get('priority') or ServiceRequest.Priority.MEDIUM,
            description=description,
            status=ServiceRequestStatus.PENDING,
            status_changed_at=timezone.now(),
        )

        AuditLog.append(
            action='service_request.created',
            resource_type=EntityKind.SERVICE_REQUEST.value,
            resource_id=service_request.id,
            actor=actor,
            tenant_id=tenant_id,
            new_values={
                'status': service_request.status,
                'priority': service_request.priority,
                'equipment_id': str(equipment.id) if equipment else None,
                'provider_id': str(provider.id) if provider else None,
            },
        )
        notify_on_commit(
            'service_request.created',
            tenant_id,
            {'service_request_id': str(service_request.id), 'provider_id': str(provider.id) if provider else None}
        )
        logger.info(
            "Service request created",
            extra={'tenant_id': str(tenant_id), 'service_request_id': str(service_request.id)}
        )
        return service_request

    @classmethod
    def authorize_party_transition(cls, actor, service_request, new_status):
        """
        Check that the actor's side may set new_status.

        Platform admins act for either side; platform support is read-only.

        Raises:
            Forbidden: TRANSITION_NOT_PERMITTED_FOR_PARTY, or a mutation gate code
        """
        action = 'service_request.status_changed'
        if actor.is_platform:
            authorize_mutation(
                actor, service_request.tenant_id, action,
                resource_type='service_request', resource_id=service_request.id,
            )
            return

        party = party_of(actor, service_request)
        if party is None or new_status not in PARTY_TARGETS[party]:
            SecurityLogger.log_permission_denied(
                actor, action, 'TRANSITION_NOT_PERMITTED_FOR_PARTY',
                'service_request', service_request.id,
            )
            raise Forbidden(
                f"The {party or 'requesting'} side cannot move a service request to '{new_status}'",
                code='TRANSITION_NOT_PERMITTED_FOR_PARTY',
                details={'party': party, 'attempted_to': new_status}
            )
        # Gate on the actor's own organization: suspension and membership
        authorize_mutation(
            actor, actor.tenant_id, action,
            resource_type='service_request', resource_id=service_request.id,
        )

    @classmethod
    @transaction.atomic
    def change_status(cls, actor, service_request_id, new_status, notes=''):
        """
        Move a service request to new_status.

        Raises:
            NotFound: request not visible to the actor
            ValidationFailed: unknown status value
            Forbidden: the actor's side may not set new_status
            InvalidTransition: new_status not reachable from the current status
        """
        if new_status not in ServiceRequestStatus.values:
            raise ValidationFailed(
                "Unknown service request status",
                details={'field': 'status', 'allowed': ServiceRequestStatus.values}
            )
        service_request = cls.get_service_request(actor, service_request_id)
        cls.authorize_party_transition(actor, service_request, new_status)
        service_request, _ = WorkflowEngine.apply_transition(
            service_request, new_status, performed_by=actor, notes=notes,
        )
        return service_request

    @classmethod
    def cancel(cls, actor, service_request_id, reason=''):
        return cls.change_status(actor, service_request_id, ServiceRequestStatus.CANCELLED.value, notes=reason)

    @classmethod
    def history(cls, actor, service_request_id):
        service_request = cls.get_service_request(actor, service_request_id)
        return (
            StatusHistory.objects.for_entity(EntityKind.SERVICE_REQUEST, service_request.id)
            .select_related('performed_by')
        )
