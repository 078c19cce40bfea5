"""
Hospital equipment inventory and failure reports.
"""
from django.db import models

from apps.core.models import BaseModel, TimestampedModel
from apps.workflows.models import WorkflowEntity
from apps.workflows.transitions import EntityKind, EquipmentStatus


class EquipmentQuerySet(models.QuerySet):

    def for_tenant(self, tenant_id):
        return self.filter(tenant_id=tenant_id)

    def with_status(self, status):
        return self.filter(status=status)

    def search(self, text):
        return self.filter(
            models.Q(name__icontains=text)
            | models.Q(serial_number__icontains=text)
            | models.Q(location__icontains=text)
        )


class EquipmentManager(models.Manager.from_queryset(EquipmentQuerySet)):
    """Manager excluding soft-deleted equipment."""

    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


class Equipment(BaseModel, WorkflowEntity):
    """
    A piece of medical equipment owned by a hospital organization.

    Status changes go through WorkflowEngine only.
    """

    ENTITY_KIND = EntityKind.EQUIPMENT.value

    class Condition(models.TextChoices):
        EXCELLENT = 'excellent', 'Excellent'
        GOOD = 'good', 'Good'
        FAIR = 'fair', 'Fair'
        POOR = 'poor', 'Poor'

    class Criticality(models.TextChoices):
        A = 'A', 'High criticality'
        B = 'B', 'Medium criticality'
        C = 'C', 'Low criticality'

    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.PROTECT,
        related_name='equipment',
        help_text="Owning organization"
    )
    name = models.CharField(max_length=200)
    serial_number = models.CharField(
        max_length=100,
        blank=True,
        db_index=True,
        help_text="Manufacturer serial number"
    )
    category = models.CharField(max_length=100, blank=True)
    location = models.CharField(
        max_length=200,
        blank=True,
        help_text="Department or room"
    )
    condition = models.CharField(
        max_length=16,
        choices=Condition.choices,
        default=Condition.GOOD
    )
    criticality = models.CharField(
        max_length=1,
        choices=Criticality.choices,
        default=Criticality.B
    )
    status = models.CharField(
        max_length=32,
        choices=EquipmentStatus.choices,
        default=EquipmentStatus.AVAILABLE,
        db_index=True
    )

    objects = EquipmentManager()

    class Meta:
        db_table = 'equipment'
        ordering = ['name']
        verbose_name_plural = 'equipment'
        indexes = [
            models.Index(fields=['tenant', 'status'], name='equipment_tenant_status_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.status})"


class FailureReport(TimestampedModel):
    """
    A reported equipment failure.

    High and critical reports mark the equipment damaged.
    """

    class Urgency(models.TextChoices):
        LOW = 'low', 'Low'
        MEDIUM = 'medium', 'Medium'
        HIGH = 'high', 'High'
        CRITICAL = 'critical', 'Critical'

    DAMAGING_URGENCIES = frozenset({Urgency.HIGH.value, Urgency.CRITICAL.value})

    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.PROTECT,
        related_name='failure_reports'
    )
    equipment = models.ForeignKey(
        Equipment,
        on_delete=models.PROTECT,
        related_name='failure_reports'
    )
    urgency = models.CharField(
        max_length=16,
        choices=Urgency.choices,
        default=Urgency.MEDIUM
    )
    description = models.TextField()
    reported_by = models.ForeignKey(
        'rbac.User',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='failure_reports'
    )

    class Meta:
        db_table = 'failure_reports'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.equipment_id} {self.urgency}"
