"""
Status history shared by every workflow entity.
"""
from django.db import models

from apps.core.models import TimestampedModel
from apps.workflows.transitions import EntityKind


class StatusHistoryQuerySet(models.QuerySet):

    def for_entity(self, entity_kind, entity_id):
        return self.filter(entity_kind=str(entity_kind), entity_id=entity_id)

    def for_tenant(self, tenant_id):
        return self.filter(tenant_id=tenant_id)


class StatusHistory(TimestampedModel):
    """
    One row per accepted status transition.

    Written only by WorkflowEngine, in the same transaction as the status
    change it records.
    """

    entity_kind = models.CharField(
        max_length=32,
        choices=EntityKind.choices,
        help_text="Kind of workflow entity"
    )
    entity_id = models.UUIDField(
        help_text="ID of the workflow entity"
    )
    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.PROTECT,
        related_name='status_history',
        help_text="Organization owning the entity"
    )
    previous_status = models.CharField(max_length=32)
    new_status = models.CharField(max_length=32)
    performed_by = models.ForeignKey(
        'rbac.User',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='status_changes',
        help_text="User who made the change (null for system changes)"
    )
    notes = models.TextField(blank=True)

    objects = StatusHistoryQuerySet.as_manager()

    class Meta:
        db_table = 'status_history'
        ordering = ['created_at']
        verbose_name_plural = 'status history'
        indexes = [
            models.Index(fields=['entity_kind', 'entity_id', 'created_at'], name='status_hist_entity_idx'),
            models.Index(fields=['tenant', 'created_at'], name='status_hist_tenant_idx'),
        ]

    def __str__(self):
        return f"{self.entity_kind} {self.entity_id}: {self.previous_status} -> {self.new_status}"


class WorkflowEntity(models.Model):
    """
    Abstract mixin for models driven by a transition table.

    Subclasses set ENTITY_KIND and declare a ``status`` field whose choices
    come from the matching status enum.
    """

    ENTITY_KIND = None

    status_changed_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="When the status last changed"
    )

    class Meta:
        abstract = True

    def history(self):
        return StatusHistory.objects.for_entity(self.ENTITY_KIND, self.pk)
