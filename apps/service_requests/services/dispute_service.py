"""
Dispute lifecycle for the organizations involved.

Platform arbitration lives in apps.platform_admin.
"""
import logging

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.core.exceptions import Forbidden, ValidationFailed
from apps.core.logging import SecurityLogger
from apps.core.notifications import notify_on_commit
from apps.rbac.models import AuditLog
from apps.rbac.scoping import authorize_mutation, scope_queryset, scoped_get
from apps.service_requests.models import Dispute
from apps.service_requests.services.service_request_service import (
    HOSPITAL,
    ServiceRequestService,
    party_of,
)
from apps.workflows.engine import WorkflowEngine
from apps.workflows.transitions import DisputeStatus, EntityKind, ServiceRequestStatus

logger = logging.getLogger(__name__)

DISPUTABLE_STATUSES = (
    ServiceRequestStatus.IN_PROGRESS.value,
    ServiceRequestStatus.COMPLETED.value,
)


def _visibility(actor):
    tenant_id = actor.require_tenant()
    return Q(tenant_id=tenant_id) | Q(service_request__provider__tenant_id=tenant_id)


class DisputeService:
    """
    Service for dispute operations by hospital and provider organizations.
    """

    @staticmethod
    def _base_queryset():
        return Dispute.objects.select_related('tenant', 'service_request', 'service_request__provider')

    @classmethod
    def list_disputes(cls, actor, status=None):
        visible = None if actor.is_platform else _visibility(actor)
        queryset = scope_queryset(cls._base_queryset(), actor, visible=visible)
        if status:
            queryset = queryset.filter(status=status)
        return queryset

    @classmethod
    def get_dispute(cls, actor, dispute_id):
        visible = None if actor.is_platform else _visibility(actor)
        return scoped_get(cls._base_queryset(), actor, dispute_id, 'dispute', visible=visible)

    @classmethod
    @transaction.atomic
    def create_dispute(cls, actor, service_request_id, dispute_type, description):
        """
        Raise a dispute about a service request of the actor's hospital.

        Raises:
            NotFound: service request not visible to the actor
            Forbidden: HOSPITAL_ONLY when raised from the provider side
            ValidationFailed: INVALID_SERVICE_REQUEST_STATUS unless the request
                is in progress or completed
        """
        service_request = ServiceRequestService.get_service_request(actor, service_request_id)
        if not actor.is_platform and party_of(actor, service_request) != HOSPITAL:
            SecurityLogger.log_permission_denied(
                actor, 'dispute.created', 'HOSPITAL_ONLY', 'service_request', service_request.id
            )
            raise Forbidden("Only the requesting hospital can raise a dispute", code='HOSPITAL_ONLY')

        authorize_mutation(
            actor, service_request.tenant_id, 'dispute.created',
            resource_type='dispute', resource_id=service_request.id,
        )

        if service_request.status not in DISPUTABLE_STATUSES:
            raise ValidationFailed(
                "Disputes can only be raised for service requests that are in progress or completed",
                code='INVALID_SERVICE_REQUEST_STATUS',
                details={'current_status': service_request.status}
            )
        if dispute_type not in Dispute.DisputeType.values:
            raise ValidationFailed(
                "Unknown dispute type",
                details={'field': 'dispute_type', 'allowed': Dispute.DisputeType.values}
            )
        if not (description or '').strip():
            raise ValidationFailed("Description is required", details={'field': 'description'})

        dispute = Dispute.objects.create(
            tenant_id=service_request.tenant_id,
            service_request=service_request,
            raised_by_id=actor.user_id,
            dispute_type=dispute_type,
            description=description.strip(),
            status=DisputeStatus.OPEN,
        )
        AuditLog.append(
            action='dispute.created',
            resource_type=EntityKind.DISPUTE.value,
            resource_id=dispute.id,
            actor=actor,
            tenant_id=dispute.tenant_id,
            new_values={
                'status': dispute.status,
                'dispute_type': dispute_type,
                'service_request_id': str(service_request.id),
            },
        )
        notify_on_commit(
            'dispute.created',
            dispute.tenant_id,
            {'dispute_id': str(dispute.id), 'service_request_id': str(service_request.id)}
        )
        logger.info(
            "Dispute raised",
            extra={'tenant_id': str(dispute.tenant_id), 'dispute_id': str(dispute.id)}
        )
        return dispute

    @classmethod
    def _authorize(cls, actor, dispute, action):
        if actor.is_platform:
            authorize_mutation(actor, dispute.tenant_id, action, resource_type='dispute', resource_id=dispute.id)
            return
        # Either side of the underlying service request, gated on its own organization
        authorize_mutation(actor, actor.tenant_id, action, resource_type='dispute', resource_id=dispute.id)

    @classmethod
    @transaction.atomic
    def change_status(cls, actor, dispute_id, new_status, notes=''):
        """
        Move a dispute along its transition table.

        Raises:
            NotFound: dispute not visible to the actor
            InvalidTransition: new_status not reachable from the current status
        """
        if new_status not in DisputeStatus.values:
            raise ValidationFailed(
                "Unknown dispute status",
                details={'field': 'status', 'allowed': DisputeStatus.values}
            )
        dispute = cls.get_dispute(actor, dispute_id)
        cls._authorize(actor, dispute, 'dispute.status_changed')

        changes = {}
        if new_status in (DisputeStatus.RESOLVED, DisputeStatus.CLOSED):
            changes['resolved_at'] = timezone.now()
            if notes:
                changes['resolution_notes'] = notes
        dispute, _ = WorkflowEngine.apply_transition(
            dispute, new_status, performed_by=actor, notes=notes, changes=changes,
        )
        return dispute

    @classmethod
    @transaction.atomic
    def escalate(cls, actor, dispute_id, reason=''):
        """Escalate a dispute to platform arbitration."""
        dispute = cls.get_dispute(actor, dispute_id)
        cls._authorize(actor, dispute, 'dispute.escalated')
        dispute, _ = WorkflowEngine.apply_transition(
            dispute,
            DisputeStatus.ESCALATED,
            performed_by=actor,
            notes=reason,
            changes={'escalation_reason': reason or ''},
            audit_action='dispute.escalated',
        )
        return dispute
