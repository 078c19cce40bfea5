"""
Workflow engine.

The only code path that changes the status of a workflow entity. Each
accepted transition locks the entity row, validates the move against the
current persisted status, and writes the status change, one StatusHistory
row and one audit entry in a single transaction.
"""
import logging

from django.db import transaction
from django.utils import timezone

from apps.core.notifications import notify_on_commit
from apps.rbac.models import AuditLog
from apps.workflows.models import StatusHistory
from apps.workflows.transitions import assert_transition

logger = logging.getLogger(__name__)


def _plain(value):
    if hasattr(value, 'pk'):
        return str(value.pk)
    return value


class WorkflowEngine:
    """
    Apply validated status transitions to workflow entities.
    """

    @classmethod
    @transaction.atomic
    def apply_transition(cls, entity, to_status, performed_by=None, notes='',
                         changes=None, audit_action=None, metadata=None):
        """
        Move entity to to_status.

        The status is re-read under a row lock, so two concurrent requests
        cannot both leave the same state. A rejected transition writes
        nothing.

        Args:
            entity: Instance of a WorkflowEntity model
            to_status: Target status
            performed_by: Acting Actor, or None for system changes
            notes: Free-text note stored on the history row
            changes: Extra field values written with the status
            audit_action: Audit action name (defaults to '<kind>.status_changed')
            metadata: Extra audit metadata

        Returns:
            Tuple of (refreshed entity, StatusHistory)

        Raises:
            InvalidTransition: to_status is not reachable from the current status
        """
        kind = entity.ENTITY_KIND
        to_status = str(to_status)
        changes = dict(changes or {})

        locked = type(entity)._base_manager.select_for_update().get(pk=entity.pk)
        from_status = locked.status
        assert_transition(kind, from_status, to_status)

        previous_values = {'status': from_status}
        new_values = {'status': to_status}
        for field, value in changes.items():
            previous_values[field] = _plain(getattr(locked, field))
            new_values[field] = _plain(value)
            setattr(locked, field, value)

        now = timezone.now()
        locked.status = to_status
        locked.status_changed_at = now
        update_fields = ['status', 'status_changed_at', *changes.keys()]
        if any(f.name == 'updated_at' for f in locked._meta.concrete_fields):
            update_fields.append('updated_at')
        locked.save(update_fields=update_fields)

        history = StatusHistory.objects.create(
            entity_kind=kind,
            entity_id=locked.pk,
            tenant_id=locked.tenant_id,
            previous_status=from_status,
            new_status=to_status,
            performed_by_id=performed_by.user_id if performed_by is not None else None,
            notes=notes or '',
            created_at=now,
        )

        action = audit_action or f"{kind}.status_changed"
        AuditLog.append(
            action=action,
            resource_type=kind,
            resource_id=locked.pk,
            actor=performed_by,
            tenant_id=locked.tenant_id,
            previous_values=previous_values,
            new_values=new_values,
            metadata={**(metadata or {}), 'notes': notes} if notes else metadata,
        )
        notify_on_commit(
            action,
            locked.tenant_id,
            {
                'entity_kind': kind,
                'entity_id': str(locked.pk),
                'previous_status': from_status,
                'new_status': to_status,
            }
        )

        logger.info(
            "Status transition applied",
            extra={
                'entity_kind': kind,
                'entity_id': str(locked.pk),
                'tenant_id': str(locked.tenant_id),
                'previous_status': from_status,
                'new_status': to_status,
            }
        )
        return locked, history
