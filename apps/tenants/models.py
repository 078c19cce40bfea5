"""
Organization models.

A Tenant is the unit of data isolation: every membership and workflow
entity belongs to exactly one. Tenants are created at onboarding, suspended
and reactivated by platform staff, and never deleted.
"""
from django.db import models
from apps.core.models import BaseModel, TimestampedModel


class TenantDeletionNotAllowed(Exception):
    """Raised on any attempt to delete an organization."""


class TenantQuerySet(models.QuerySet):

    def delete(self):
        raise TenantDeletionNotAllowed("Organizations are never deleted; suspend them instead")


class TenantManager(models.Manager.from_queryset(TenantQuerySet)):
    """Manager for organization queries."""


class Tenant(TimestampedModel):
    """
    Hospital or provider organization.
    """

    class Kind(models.TextChoices):
        HOSPITAL = 'hospital', 'Hospital'
        PROVIDER = 'provider', 'Provider'

    class LifecycleStatus(models.TextChoices):
        TRIAL = 'trial', 'Trial'
        ACTIVE = 'active', 'Active'
        SUSPENDED = 'suspended', 'Suspended'

    name = models.CharField(
        max_length=200,
        help_text="Organization display name"
    )
    slug = models.SlugField(
        max_length=220,
        unique=True,
        help_text="URL-friendly identifier"
    )
    kind = models.CharField(
        max_length=16,
        choices=Kind.choices,
        db_index=True,
        help_text="Hospital or equipment-service provider"
    )
    lifecycle_status = models.CharField(
        max_length=16,
        choices=LifecycleStatus.choices,
        default=LifecycleStatus.TRIAL,
        db_index=True,
        help_text="Current lifecycle status"
    )
    suspended_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the organization was last suspended"
    )
    suspension_reason = models.TextField(
        blank=True,
        help_text="Operator-supplied reason for the last suspension"
    )
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        db_table = 'tenants'
        ordering = ['name']
        indexes = [
            models.Index(fields=['kind', 'lifecycle_status'], name='tenant_kind_status_idx'),
        ]

    def __str__(self):
        return self.name

    def delete(self, using=None, keep_parents=False):
        raise TenantDeletionNotAllowed("Organizations are never deleted; suspend them instead")

    @property
    def is_suspended(self):
        return self.lifecycle_status == self.LifecycleStatus.SUSPENDED


class ProviderProfile(BaseModel):
    """
    Marketplace profile of a provider organization.

    Service requests are assigned to a profile; provider-side actors reach
    those requests through the profile's tenant.
    """

    tenant = models.OneToOneField(
        Tenant,
        on_delete=models.PROTECT,
        related_name='provider_profile',
        help_text="Provider organization"
    )
    display_name = models.CharField(
        max_length=200,
        help_text="Name shown to hospitals"
    )
    description = models.TextField(blank=True)
    coverage_area = models.CharField(
        max_length=200,
        blank=True,
        help_text="Region the provider serves"
    )
    is_accepting_requests = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether the provider can be assigned new service requests"
    )

    class Meta:
        db_table = 'provider_profiles'
        ordering = ['display_name']

    def __str__(self):
        return self.display_name
