"""
RBAC models for multi-tenant access control.

Implements:
- User (global identity, optional platform role)
- Membership (user's role inside one organization)
- AuditLog (append-only compliance trail)
"""
import logging
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models, transaction
from apps.core.middleware import current_request_id
from apps.core.models import BaseModel, TimestampedModel
from apps.rbac.roles import OrgRole, PlatformRole

logger = logging.getLogger(__name__)


class UserManager(models.Manager):
    """Manager for User queries."""

    def active(self):
        """Return only active users."""
        return self.filter(is_active=True)

    def by_email(self, email):
        """Find user by email (case-insensitive)."""
        return self.filter(email__iexact=(email or '').strip()).first()


class User(BaseModel):
    """
    Global user identity - can belong to multiple organizations.

    Credentials live with the external auth provider; this record only holds
    what authorization needs. The platform role is an attribute of the user,
    never of a membership.
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        help_text="User email address (unique globally)"
    )
    name = models.CharField(
        max_length=200,
        blank=True,
        help_text="Display name"
    )
    platform_role = models.CharField(
        max_length=32,
        choices=PlatformRole.choices,
        null=True,
        blank=True,
        db_index=True,
        help_text="Platform-wide role (null for regular users)"
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether user account is active"
    )

    objects = UserManager()

    class Meta:
        db_table = 'users'
        ordering = ['-created_at']

    def __str__(self):
        return self.email


class MembershipManager(models.Manager):
    """Manager for Membership queries."""

    def for_tenant(self, tenant_id):
        """Get all memberships of an organization."""
        return self.filter(tenant_id=tenant_id)

    def for_user(self, user_id):
        """Get all memberships of a user."""
        return self.filter(user_id=user_id)

    def get_membership(self, tenant_id, user_id):
        """Get a specific membership, or None."""
        return self.filter(tenant_id=tenant_id, user_id=user_id).first()

    def count_owners(self, tenant_id):
        return self.filter(tenant_id=tenant_id, role=OrgRole.OWNER).count()


class Membership(TimestampedModel):
    """
    A user's role inside one organization.

    Removal deletes the row; the audit log keeps the history.
    """

    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.PROTECT,
        related_name='memberships',
        help_text="Organization this membership belongs to"
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='memberships',
        help_text="User who is a member"
    )
    role = models.CharField(
        max_length=16,
        choices=OrgRole.choices,
        default=OrgRole.MEMBER,
        db_index=True,
        help_text="Role within the organization"
    )
    updated_at = models.DateTimeField(auto_now=True)

    objects = MembershipManager()

    class Meta:
        db_table = 'memberships'
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(fields=['tenant', 'user'], name='unique_membership_per_tenant'),
        ]
        indexes = [
            models.Index(fields=['tenant', 'role'], name='membership_tenant_role_idx'),
        ]

    def __str__(self):
        return f"{self.user_id} @ {self.tenant_id} ({self.role})"


class AuditLogImmutable(Exception):
    """Raised on any attempt to change or remove an audit entry."""


class AuditLogQuerySet(models.QuerySet):
    """QuerySet that only supports insert and read."""

    def update(self, **kwargs):
        raise AuditLogImmutable("Audit log entries cannot be updated")

    def delete(self):
        raise AuditLogImmutable("Audit log entries cannot be deleted")

    def for_tenant(self, tenant_id):
        """Get audit entries for a specific organization."""
        return self.filter(tenant_id=tenant_id)

    def for_actor(self, user_id):
        """Get audit entries recorded for a specific user."""
        return self.filter(actor_id=user_id)

    def by_action(self, action):
        """Get audit entries for a specific action."""
        return self.filter(action=action)

    def by_resource(self, resource_type, resource_id=None):
        """Get audit entries for a resource type and optionally one resource."""
        qs = self.filter(resource_type=resource_type)
        if resource_id:
            qs = qs.filter(resource_id=str(resource_id))
        return qs

    def search(self, text):
        return self.filter(
            models.Q(action__icontains=text)
            | models.Q(resource_type__icontains=text)
            | models.Q(resource_id__icontains=text)
        )


class AuditLogManager(models.Manager.from_queryset(AuditLogQuerySet)):
    """Manager for AuditLog queries."""


class AuditLog(TimestampedModel):
    """
    Append-only compliance trail for privileged and state-changing actions.

    Entries are written in the same transaction as the change they describe
    and are retained for at least five years. There is no update or delete
    path: instance saves after creation, instance deletes and queryset
    update/delete all raise AuditLogImmutable.
    """

    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='audit_logs',
        db_index=True,
        help_text="Organization this action belongs to (null for platform-wide actions)"
    )
    actor = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='audit_logs',
        db_index=True,
        help_text="User who performed the action (null for system actions)"
    )

    action = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Action performed (e.g., 'organization.member_removed')"
    )
    resource_type = models.CharField(
        max_length=50,
        db_index=True,
        help_text="Type of resource (e.g., 'membership', 'service_request')"
    )
    resource_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="ID of the resource"
    )

    previous_values = models.JSONField(
        default=dict,
        blank=True,
        encoder=DjangoJSONEncoder,
        help_text="Values before the change"
    )
    new_values = models.JSONField(
        default=dict,
        blank=True,
        encoder=DjangoJSONEncoder,
        help_text="Values after the change"
    )

    request_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        db_index=True,
        help_text="Request ID for tracing"
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        encoder=DjangoJSONEncoder,
        help_text="Additional context (acting roles, notes)"
    )

    objects = AuditLogManager()

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['tenant', 'created_at'], name='audit_tenant_created_idx'),
            models.Index(fields=['actor', 'created_at'], name='audit_actor_created_idx'),
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['resource_type', 'resource_id'], name='audit_resource_idx'),
        ]

    def __str__(self):
        return f"{self.tenant_id or 'platform'} - {self.actor_id or 'system'} - {self.action}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AuditLogImmutable("Audit log entries cannot be updated")
        super().save(*args, **kwargs)

    def delete(self, using=None, keep_parents=False):
        raise AuditLogImmutable("Audit log entries cannot be deleted")

    @classmethod
    def append(cls, action, resource_type, resource_id, actor=None, tenant_id=None,
               previous_values=None, new_values=None, metadata=None):
        """
        Append one entry and return its id.

        Must run inside the transaction of the primary write so both commit
        or roll back together. Failures propagate to the caller.

        Args:
            action: Dotted action name
            resource_type: Type of the changed resource
            resource_id: ID of the changed resource
            actor: Actor (or None for system actions)
            tenant_id: Organization the change belongs to (None for platform-wide)
            previous_values: Values before the change
            new_values: Values after the change
            metadata: Additional context

        Returns:
            UUID of the new entry
        """
        if not transaction.get_connection().in_atomic_block:
            raise RuntimeError("AuditLog.append must be called inside transaction.atomic()")

        context = dict(metadata or {})
        if actor is not None:
            if actor.org_role:
                context.setdefault('org_role', actor.org_role)
            if actor.platform_role:
                context.setdefault('platform_role', actor.platform_role)

        entry = cls.objects.create(
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id),
            actor_id=actor.user_id if actor is not None else None,
            tenant_id=tenant_id,
            previous_values=previous_values or {},
            new_values=new_values or {},
            request_id=current_request_id(),
            metadata=context,
        )

        logger.info(
            f"Audit entry appended: {action}",
            extra={
                'audit_id': str(entry.id),
                'action': action,
                'resource_type': resource_type,
                'resource_id': str(resource_id),
                'tenant_id': str(tenant_id) if tenant_id else None,
            }
        )
        return entry.id
