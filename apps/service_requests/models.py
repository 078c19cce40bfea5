"""
Marketplace workflow entities: service requests, disputes and payments.

Each is owned by the hospital organization that created it. Provider
organizations reach service requests (and their disputes) through the
assigned provider profile.
"""
from django.core.validators import MinValueValidator
from django.db import models

from apps.core.models import BaseModel
from apps.workflows.models import WorkflowEntity
from apps.workflows.transitions import (
    DisputeStatus,
    EntityKind,
    PaymentStatus,
    ServiceRequestStatus,
)


class ServiceRequestQuerySet(models.QuerySet):

    def for_tenant(self, tenant_id):
        return self.filter(tenant_id=tenant_id)

    def for_provider_tenant(self, tenant_id):
        return self.filter(provider__tenant_id=tenant_id)

    def open(self):
        return self.exclude(status__in=ServiceRequest.CLOSED_STATUSES)


class ServiceRequest(BaseModel, WorkflowEntity):
    """
    A hospital's request for equipment service.
    """

    ENTITY_KIND = EntityKind.SERVICE_REQUEST.value

    # No longer waiting on anyone
    CLOSED_STATUSES = (
        ServiceRequestStatus.COMPLETED,
        ServiceRequestStatus.CANCELLED,
        ServiceRequestStatus.DISPUTED,
    )

    class RequestType(models.TextChoices):
        REPAIR = 'repair', 'Repair'
        MAINTENANCE = 'maintenance', 'Maintenance'
        CALIBRATION = 'calibration', 'Calibration'
        INSPECTION = 'inspection', 'Inspection'
        INSTALLATION = 'installation', 'Installation'
        OTHER = 'other', 'Other'

    class Priority(models.TextChoices):
        LOW = 'low', 'Low'
        MEDIUM = 'medium', 'Medium'
        HIGH = 'high', 'High'
        CRITICAL = 'critical', 'Critical'

    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.PROTECT,
        related_name='service_requests',
        help_text="Hospital organization that raised the request"
    )
    equipment = models.ForeignKey(
        'equipment.Equipment',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='service_requests'
    )
    provider = models.ForeignKey(
        'tenants.ProviderProfile',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='service_requests',
        help_text="Assigned provider"
    )
    requested_by = models.ForeignKey(
        'rbac.User',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='service_requests'
    )
    request_type = models.CharField(
        max_length=16,
        choices=RequestType.choices,
        default=RequestType.REPAIR
    )
    priority = models.CharField(
        max_length=16,
        choices=Priority.choices,
        default=Priority.MEDIUM,
        db_index=True
    )
    description = models.TextField()
    status = models.CharField(
        max_length=32,
        choices=ServiceRequestStatus.choices,
        default=ServiceRequestStatus.PENDING,
        db_index=True
    )

    objects = ServiceRequestQuerySet.as_manager()

    class Meta:
        db_table = 'service_requests'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['tenant', 'status'], name='sr_tenant_status_idx'),
            models.Index(fields=['provider', 'status'], name='sr_provider_status_idx'),
            models.Index(fields=['status', 'status_changed_at'], name='sr_status_changed_idx'),
        ]

    def __str__(self):
        return f"{self.request_type} ({self.status})"


class Dispute(BaseModel, WorkflowEntity):
    """
    A hospital's dispute about a service request.
    """

    ENTITY_KIND = EntityKind.DISPUTE.value

    class DisputeType(models.TextChoices):
        QUALITY = 'quality', 'Quality'
        PRICING = 'pricing', 'Pricing'
        TIMELINE = 'timeline', 'Timeline'
        OTHER = 'other', 'Other'

    class Resolution(models.TextChoices):
        REFUND = 'refund', 'Refund'
        PARTIAL_REFUND = 'partial_refund', 'Partial refund'
        DISMISS = 'dismiss', 'Dismiss'
        RE_ASSIGN = 're_assign', 'Re-assign'

    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.PROTECT,
        related_name='disputes',
        help_text="Hospital organization that raised the dispute"
    )
    service_request = models.ForeignKey(
        ServiceRequest,
        on_delete=models.PROTECT,
        related_name='disputes'
    )
    raised_by = models.ForeignKey(
        'rbac.User',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='disputes'
    )
    dispute_type = models.CharField(
        max_length=16,
        choices=DisputeType.choices,
        default=DisputeType.OTHER
    )
    description = models.TextField()
    status = models.CharField(
        max_length=32,
        choices=DisputeStatus.choices,
        default=DisputeStatus.OPEN,
        db_index=True
    )
    escalation_reason = models.TextField(blank=True)
    resolution = models.CharField(
        max_length=16,
        choices=Resolution.choices,
        blank=True,
        help_text="Platform ruling"
    )
    resolution_notes = models.TextField(blank=True)
    refund_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True
    )
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'disputes'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['tenant', 'status'], name='dispute_tenant_status_idx'),
        ]

    def __str__(self):
        return f"{self.dispute_type} ({self.status})"

    @property
    def has_ruling(self):
        return bool(self.resolution)


class Payment(BaseModel, WorkflowEntity):
    """
    A payment by a hospital, optionally tied to a service request.
    """

    ENTITY_KIND = EntityKind.PAYMENT.value

    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.PROTECT,
        related_name='payments'
    )
    service_request = models.ForeignKey(
        ServiceRequest,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payments'
    )
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(0)]
    )
    currency = models.CharField(max_length=3, default='VND')
    status = models.CharField(
        max_length=32,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True
    )
    reference = models.CharField(
        max_length=100,
        blank=True,
        help_text="External payment reference"
    )
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'payments'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.amount} {self.currency} ({self.status})"
