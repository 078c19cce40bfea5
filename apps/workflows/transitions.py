"""
Transition tables for the workflow entities.

Each entity kind owns one fixed directed table; it is the single source of
truth for which status changes are legal. A transition is valid iff the
target is listed under the current status. Self-transitions are never valid
and statuses with no outgoing edges are terminal.
"""
from typing import FrozenSet

from django.db import models

from apps.core.exceptions import InvalidTransition


class EntityKind(models.TextChoices):
    SERVICE_REQUEST = 'service_request', 'Service request'
    DISPUTE = 'dispute', 'Dispute'
    EQUIPMENT = 'equipment', 'Equipment'
    PAYMENT = 'payment', 'Payment'


class ServiceRequestStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    QUOTED = 'quoted', 'Quoted'
    ACCEPTED = 'accepted', 'Accepted'
    IN_PROGRESS = 'in_progress', 'In progress'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'
    DISPUTED = 'disputed', 'Disputed'


class DisputeStatus(models.TextChoices):
    OPEN = 'open', 'Open'
    INVESTIGATING = 'investigating', 'Investigating'
    RESOLVED = 'resolved', 'Resolved'
    CLOSED = 'closed', 'Closed'
    ESCALATED = 'escalated', 'Escalated'


class EquipmentStatus(models.TextChoices):
    AVAILABLE = 'available', 'Available'
    IN_USE = 'in_use', 'In use'
    MAINTENANCE = 'maintenance', 'Maintenance'
    DAMAGED = 'damaged', 'Damaged'
    RETIRED = 'retired', 'Retired'


class PaymentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    COMPLETED = 'completed', 'Completed'
    FAILED = 'failed', 'Failed'
    REFUNDED = 'refunded', 'Refunded'


def _table(edges):
    return {
        str(source): frozenset(str(target) for target in targets)
        for source, targets in edges.items()
    }


SR = ServiceRequestStatus
DS = DisputeStatus
EQ = EquipmentStatus
PS = PaymentStatus

TRANSITIONS = {
    EntityKind.SERVICE_REQUEST.value: _table({
        SR.PENDING: {SR.QUOTED, SR.CANCELLED},
        SR.QUOTED: {SR.ACCEPTED, SR.CANCELLED},
        SR.ACCEPTED: {SR.IN_PROGRESS, SR.CANCELLED},
        SR.IN_PROGRESS: {SR.COMPLETED, SR.DISPUTED},
        SR.COMPLETED: {SR.DISPUTED},
        SR.CANCELLED: set(),
        SR.DISPUTED: set(),
    }),
    EntityKind.DISPUTE.value: _table({
        DS.OPEN: {DS.INVESTIGATING, DS.ESCALATED},
        DS.INVESTIGATING: {DS.RESOLVED, DS.CLOSED, DS.ESCALATED},
        DS.RESOLVED: set(),
        DS.CLOSED: set(),
        DS.ESCALATED: set(),
    }),
    EntityKind.EQUIPMENT.value: _table({
        EQ.AVAILABLE: {EQ.IN_USE, EQ.MAINTENANCE, EQ.DAMAGED, EQ.RETIRED},
        EQ.IN_USE: {EQ.AVAILABLE, EQ.MAINTENANCE, EQ.DAMAGED, EQ.RETIRED},
        EQ.MAINTENANCE: {EQ.AVAILABLE, EQ.IN_USE, EQ.DAMAGED, EQ.RETIRED},
        EQ.DAMAGED: {EQ.AVAILABLE, EQ.RETIRED},
        EQ.RETIRED: set(),
    }),
    EntityKind.PAYMENT.value: _table({
        PS.PENDING: {PS.COMPLETED, PS.FAILED, PS.REFUNDED},
        PS.COMPLETED: set(),
        PS.FAILED: set(),
        PS.REFUNDED: set(),
    }),
}

STATUS_CHOICES = {
    EntityKind.SERVICE_REQUEST.value: ServiceRequestStatus,
    EntityKind.DISPUTE.value: DisputeStatus,
    EntityKind.EQUIPMENT.value: EquipmentStatus,
    EntityKind.PAYMENT.value: PaymentStatus,
}


def _table_for(entity_kind):
    try:
        return TRANSITIONS[str(entity_kind)]
    except KeyError:
        raise ValueError(f"Unknown entity kind: {entity_kind}")


def can_transition(entity_kind, from_status, to_status) -> bool:
    """Return True iff to_status is reachable from from_status in one step."""
    table = _table_for(entity_kind)
    from_status, to_status = str(from_status), str(to_status)
    if from_status == to_status:
        return False
    return to_status in table.get(from_status, frozenset())


def next_states(entity_kind, from_status) -> FrozenSet[str]:
    """Statuses reachable from from_status; empty for terminal statuses."""
    return _table_for(entity_kind).get(str(from_status), frozenset())


def is_terminal(entity_kind, status) -> bool:
    return not next_states(entity_kind, status)


def statuses(entity_kind):
    return list(_table_for(entity_kind).keys())


def assert_transition(entity_kind, from_status, to_status):
    """
    Raises:
        InvalidTransition: carrying entity kind, current status and attempted status
    """
    if not can_transition(entity_kind, from_status, to_status):
        raise InvalidTransition(entity_kind, from_status, to_status)
