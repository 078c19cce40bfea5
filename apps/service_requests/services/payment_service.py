"""
Payment records of hospital organizations.
"""
import logging
import uuid
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import NotFound, ValidationFailed
from apps.core.logging import SecurityLogger
from apps.core.notifications import notify_on_commit
from apps.rbac.models import AuditLog
from apps.rbac.roles import MANAGER_ROLES
from apps.rbac.scoping import authorize_mutation, scope_queryset, scoped_get
from apps.service_requests.models import Payment, ServiceRequest
from apps.workflows.engine import WorkflowEngine
from apps.workflows.transitions import EntityKind, PaymentStatus

logger = logging.getLogger(__name__)


class PaymentService:
    """
    Service for payment operations. Every write requires owner or admin.
    """

    @staticmethod
    def list_payments(actor, status=None):
        queryset = scope_queryset(Payment.objects.select_related('service_request'), actor)
        if status:
            queryset = queryset.filter(status=status)
        return queryset

    @staticmethod
    def get_payment(actor, payment_id):
        return scoped_get(Payment.objects.all(), actor, payment_id, 'payment')

    @staticmethod
    def _parse_amount(amount):
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, TypeError, ValueError):
            value = None
        if value is None or not value.is_finite() or value <= 0:
            raise ValidationFailed("Amount must be a positive number", details={'field': 'amount'})
        return value

    @classmethod
    @transaction.atomic
    def create_payment(cls, actor, amount, currency='VND', service_request_id=None, reference=''):
        """
        Record a pending payment for the actor's organization.

        Raises:
            ValidationFailed: amount is not positive
            NotFound: service request not owned by the actor's organization
        """
        tenant_id = actor.require_tenant()
        authorize_mutation(
            actor, tenant_id, 'payment.created',
            required_roles=MANAGER_ROLES, resource_type='payment',
        )
        value = cls._parse_amount(amount)

        service_request = None
        if service_request_id:
            service_request = ServiceRequest.objects.filter(id=service_request_id, tenant_id=tenant_id).first()
            if service_request is None:
                if ServiceRequest.objects.filter(id=service_request_id).exists():
                    SecurityLogger.log_cross_tenant_access(actor, 'service_request', service_request_id)
                raise NotFound("Service request not found", details={'resource_type': 'service_request'})

        payment = Payment.objects.create(
            tenant_id=uuid.UUID(str(tenant_id)),
            service_request=service_request,
            amount=value,
            currency=(currency or 'VND').upper(),
            reference=reference or '',
            status=PaymentStatus.PENDING,
            status_changed_at=timezone.now(),
        )
        AuditLog.append(
            action='payment.created',
            resource_type=EntityKind.PAYMENT.value,
            resource_id=payment.id,
            actor=actor,
            tenant_id=tenant_id,
            new_values={
                'amount': value,
                'currency': payment.currency,
                'status': payment.status,
                'service_request_id': str(service_request.id) if service_request else None,
            },
        )
        notify_on_commit('payment.created', tenant_id, {'payment_id': str(payment.id)})
        logger.info(
            "Payment recorded",
            extra={'tenant_id': str(tenant_id), 'payment_id': str(payment.id)}
        )
        return payment

    @classmethod
    @transaction.atomic
    def change_status(cls, actor, payment_id, new_status, notes=''):
        """
        Settle a pending payment.

        Raises:
            Forbidden: role below admin
            InvalidTransition: the payment is no longer pending
        """
        if new_status not in PaymentStatus.values:
            raise ValidationFailed(
                "Unknown payment status",
                details={'field': 'status', 'allowed': PaymentStatus.values}
            )
        payment = cls.get_payment(actor, payment_id)
        authorize_mutation(
            actor, payment.tenant_id, 'payment.status_changed',
            required_roles=MANAGER_ROLES, resource_type='payment', resource_id=payment.id,
        )
        changes = {}
        if new_status == PaymentStatus.COMPLETED:
            changes['paid_at'] = timezone.now()
        payment, _ = WorkflowEngine.apply_transition(
            payment, new_status, performed_by=actor, notes=notes, changes=changes,
        )
        return payment
