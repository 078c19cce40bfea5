"""
Equipment inventory service.

Handles:
- Registering equipment in the actor's organization
- Status changes through the workflow engine
- Failure reports, with damaged cascade for high and critical urgency
"""
import logging
import uuid

from django.db import transaction

from apps.core.exceptions import ValidationFailed
from apps.core.notifications import notify_on_commit
from apps.equipment.models import Equipment, FailureReport
from apps.rbac.models import AuditLog
from apps.rbac.roles import ALL_ORG_ROLES, MANAGER_ROLES
from apps.rbac.scoping import authorize_mutation, scope_queryset, scoped_get
from apps.workflows.engine import WorkflowEngine
from apps.workflows.models import StatusHistory
from apps.workflows.transitions import EntityKind, EquipmentStatus

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('name', 'serial_number', 'category', 'location', 'condition', 'criticality')


class EquipmentService:
    """
    Service for equipment inventory operations.
    """

    @staticmethod
    def list_equipment(actor, status=None, category=None, search=None):
        queryset = scope_queryset(Equipment.objects.all(), actor)
        if status:
            queryset = queryset.with_status(status)
        if category:
            queryset = queryset.filter(category__iexact=category)
        if search:
            queryset = queryset.search(search)
        return queryset

    @staticmethod
    def get_equipment(actor, equipment_id):
        """
        Raises:
            NotFound: missing or owned by another organization
        """
        return scoped_get(Equipment.objects.all(), actor, equipment_id, 'equipment')

    @classmethod
    @transaction.atomic
    def create_equipment(cls, actor, data):
        """
        Register equipment in the actor's active organization.

        Args:
            actor: Acting session (owner or admin)
            data: Validated field values

        Returns:
            Equipment
        """
        tenant_id = actor.require_tenant()
        authorize_mutation(
            actor, tenant_id, 'equipment.created',
            required_roles=MANAGER_ROLES, resource_type='equipment',
        )

        values = {field: data[field] for field in EDITABLE_FIELDS if field in data}
        if not (values.get('name') or '').strip():
            raise ValidationFailed("Equipment name is required", details={'field': 'name'})

        equipment = Equipment.objects.create(tenant_id=uuid.UUID(str(tenant_id)), **values)

        AuditLog.append(
            action='equipment.created',
            resource_type=EntityKind.EQUIPMENT.value,
            resource_id=equipment.id,
            actor=actor,
            tenant_id=tenant_id,
            new_values={**values, 'status': equipment.status},
        )
        logger.info(
            "Equipment registered",
            extra={'tenant_id': str(tenant_id), 'equipment_id': str(equipment.id)}
        )
        return equipment

    @classmethod
    @transaction.atomic
    def change_status(cls, actor, equipment_id, new_status, notes=''):
        """
        Move equipment to new_status.

        Retiring requires owner or admin; any other change requires membership.

        Raises:
            NotFound: equipment not visible to the actor
            Forbidden: role too low or organization suspended
            InvalidTransition: new_status not reachable from the current status
        """
        equipment = cls.get_equipment(actor, equipment_id)
        required = MANAGER_ROLES if new_status == EquipmentStatus.RETIRED else ALL_ORG_ROLES
        authorize_mutation(
            actor, equipment.tenant_id, 'equipment.status_changed',
            required_roles=required, resource_type='equipment', resource_id=equipment.id,
        )
        equipment, _ = WorkflowEngine.apply_transition(
            equipment, new_status, performed_by=actor, notes=notes,
        )
        return equipment

    @classmethod
    @transaction.atomic
    def report_failure(cls, actor, equipment_id, urgency, description):
        """
        File a failure report.

        High and critical reports move the equipment to damaged in the same
        transaction unless it is already damaged or retired.

        Returns:
            Tuple of (FailureReport, Equipment)
        """
        equipment = cls.get_equipment(actor, equipment_id)
        authorize_mutation(
            actor, equipment.tenant_id, 'equipment.failure_reported',
            resource_type='equipment', resource_id=equipment.id,
        )
        equipment = Equipment.objects.select_for_update().get(pk=equipment.pk)
        if urgency not in FailureReport.Urgency.values:
            raise ValidationFailed(
                "Unknown urgency",
                details={'field': 'urgency', 'allowed': FailureReport.Urgency.values}
            )
        if not (description or '').strip():
            raise ValidationFailed("Description is required", details={'field': 'description'})

        report = FailureReport.objects.create(
            tenant_id=equipment.tenant_id,
            equipment=equipment,
            urgency=urgency,
            description=description.strip(),
            reported_by_id=actor.user_id,
        )
        AuditLog.append(
            action='equipment.failure_reported',
            resource_type='failure_report',
            resource_id=report.id,
            actor=actor,
            tenant_id=equipment.tenant_id,
            new_values={'equipment_id': str(equipment.id), 'urgency': urgency},
        )

        if urgency in FailureReport.DAMAGING_URGENCIES and equipment.status not in (
            EquipmentStatus.DAMAGED, EquipmentStatus.RETIRED
        ):
            equipment, _ = WorkflowEngine.apply_transition(
                equipment,
                EquipmentStatus.DAMAGED,
                performed_by=actor,
                notes=f"Failure report {report.id} ({urgency})",
            )
        else:
            notify_on_commit(
                'equipment.failure_reported',
                equipment.tenant_id,
                {'equipment_id': str(equipment.id), 'urgency': urgency}
            )

        logger.info(
            "Failure reported",
            extra={
                'tenant_id': str(equipment.tenant_id),
                'equipment_id': str(equipment.id),
                'urgency': urgency,
            }
        )
        return report, equipment

    @classmethod
    def history(cls, actor, equipment_id):
        equipment = cls.get_equipment(actor, equipment_id)
        return (
            StatusHistory.objects.for_entity(EntityKind.EQUIPMENT, equipment.id)
            .select_related('performed_by')
        )
