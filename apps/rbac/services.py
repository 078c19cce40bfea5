"""
Membership management service.

Every mutation follows the same shape: gate the actor against the
organization, lock the organization row, re-read the memberships involved,
apply the pure permission checks and the last-owner guard on those fresh
values, write, and append the audit entry in the same transaction.
"""
import logging

from django.db import transaction

from apps.core.exceptions import Forbidden, NotFound, ValidationFailed
from apps.core.logging import SecurityLogger
from apps.core.notifications import notify_on_commit
from apps.rbac.models import AuditLog, Membership, User
from apps.rbac.permissions import (
    can_assign_role,
    can_manage_member,
    can_read_tenant_resource,
    ensure_owner_remains,
)
from apps.rbac.roles import ALL_ORG_ROLES, MANAGER_ROLES
from apps.rbac.scoping import authorize_mutation

logger = logging.getLogger(__name__)


class MembershipService:
    """
    Service for listing and managing organization members.
    """

    @staticmethod
    def _lock_tenant(tenant_id):
        from apps.tenants.models import Tenant

        tenant = Tenant.objects.select_for_update().filter(id=tenant_id).first()
        if tenant is None:
            raise NotFound("Organization not found", details={'resource_type': 'tenant'})
        return tenant

    @staticmethod
    def _acting_role(actor, tenant_id):
        """
        Current role of the actor in tenant_id, read from the store.

        Platform admins act with owner authority and have no membership.
        """
        if actor.is_platform_admin:
            return 'owner'
        membership = Membership.objects.get_membership(tenant_id, actor.user_id)
        if membership is None:
            raise NotFound("Organization not found", details={'resource_type': 'tenant'})
        return membership.role

    @staticmethod
    def _validate_role(role):
        if role not in ALL_ORG_ROLES:
            raise ValidationFailed(
                "Unknown role",
                details={'field': 'role', 'allowed': sorted(ALL_ORG_ROLES)}
            )

    @classmethod
    def list_members(cls, actor, tenant_id):
        """
        List the memberships of an organization.

        Raises:
            NotFound: actor neither belongs to the organization nor holds a platform role
        """
        if not can_read_tenant_resource(actor, tenant_id):
            raise NotFound("Organization not found", details={'resource_type': 'tenant'})
        return (
            Membership.objects.for_tenant(tenant_id)
            .select_related('user')
            .order_by('created_at')
        )

    @classmethod
    @transaction.atomic
    def add_member(cls, actor, tenant_id, email, role):
        """
        Add an existing user to an organization.

        Raises:
            Forbidden: CANNOT_ASSIGN_ROLE when the actor may not grant role
            NotFound: no active user with that email
            ValidationFailed: ALREADY_MEMBER, or an unknown role
        """
        cls._validate_role(role)
        authorize_mutation(
            actor, tenant_id, 'organization.member_added',
            required_roles=MANAGER_ROLES, resource_type='membership',
        )
        tenant = cls._lock_tenant(tenant_id)

        acting_role = cls._acting_role(actor, tenant_id)
        if not can_assign_role(acting_role, role):
            SecurityLogger.log_permission_denied(actor, 'organization.member_added', 'CANNOT_ASSIGN_ROLE', 'membership')
            raise Forbidden(
                f"Your role cannot grant the '{role}' role",
                code='CANNOT_ASSIGN_ROLE',
                details={'role': role}
            )

        user = User.objects.active().filter(email__iexact=(email or '').strip()).first()
        if user is None:
            raise NotFound("User not found", details={'resource_type': 'user'})

        if Membership.objects.filter(tenant_id=tenant_id, user=user).exists():
            raise ValidationFailed(
                "User is already a member of this organization",
                code='ALREADY_MEMBER'
            )

        membership = Membership.objects.create(tenant=tenant, user=user, role=role)

        AuditLog.append(
            action='organization.member_added',
            resource_type='membership',
            resource_id=membership.id,
            actor=actor,
            tenant_id=tenant_id,
            new_values={'user_id': str(user.id), 'role': role},
        )
        notify_on_commit('organization.member_added', tenant_id, {'user_id': str(user.id), 'role': role})

        logger.info(
            "Member added",
            extra={'tenant_id': str(tenant_id), 'member_user_id': str(user.id), 'role': role}
        )
        return membership

    @classmethod
    def _load_target(cls, actor, tenant_id, user_id, action):
        target = (
            Membership.objects.select_for_update()
            .filter(tenant_id=tenant_id, user_id=user_id)
            .first()
        )
        if target is None:
            raise NotFound("Member not found", details={'resource_type': 'membership'})

        acting_role = cls._acting_role(actor, tenant_id)
        if not can_manage_member(acting_role, target.role, actor.user_id, target.user_id):
            SecurityLogger.log_permission_denied(actor, action, 'CANNOT_MANAGE_MEMBER', 'membership', target.id)
            raise Forbidden(
                "You cannot manage this member",
                code='CANNOT_MANAGE_MEMBER',
                details={'target_role': target.role}
            )
        return target, acting_role

    @classmethod
    @transaction.atomic
    def change_role(cls, actor, tenant_id, user_id, new_role):
        """
        Change a member's role.

        Raises:
            Forbidden: CANNOT_MANAGE_MEMBER (including self-targeting) or CANNOT_ASSIGN_ROLE
            LastOwnerViolation: demoting the only owner
            NotFound: organization or member not visible to the actor
        """
        cls._validate_role(new_role)
        action = 'organization.member_role_changed'
        authorize_mutation(actor, tenant_id, action, resource_type='membership')
        cls._lock_tenant(tenant_id)

        target, acting_role = cls._load_target(actor, tenant_id, user_id, action)
        if not can_assign_role(acting_role, new_role):
            SecurityLogger.log_permission_denied(actor, action, 'CANNOT_ASSIGN_ROLE', 'membership', target.id)
            raise Forbidden(
                f"Your role cannot grant the '{new_role}' role",
                code='CANNOT_ASSIGN_ROLE',
                details={'role': new_role}
            )

        if target.role == new_role:
            return target

        # Counted after the tenant row lock so concurrent demotions serialize
        owner_count = Membership.objects.count_owners(tenant_id)
        ensure_owner_remains(target.role, owner_count, new_role=new_role)

        previous_role = target.role
        target.role = new_role
        target.save(update_fields=['role', 'updated_at'])

        AuditLog.append(
            action=action,
            resource_type='membership',
            resource_id=target.id,
            actor=actor,
            tenant_id=tenant_id,
            previous_values={'user_id': str(target.user_id), 'role': previous_role},
            new_values={'user_id': str(target.user_id), 'role': new_role},
        )
        notify_on_commit(action, tenant_id, {'user_id': str(target.user_id), 'role': new_role})

        logger.info(
            "Member role changed",
            extra={
                'tenant_id': str(tenant_id),
                'member_user_id': str(target.user_id),
                'previous_role': previous_role,
                'new_role': new_role,
            }
        )
        return target

    @classmethod
    @transaction.atomic
    def remove_member(cls, actor, tenant_id, user_id):
        """
        Remove a member from an organization.

        Raises:
            Forbidden: CANNOT_MANAGE_MEMBER (including self-removal)
            LastOwnerViolation: removing the only owner
            NotFound: organization or member not visible to the actor
        """
        action = 'organization.member_removed'
        authorize_mutation(actor, tenant_id, action, resource_type='membership')
        cls._lock_tenant(tenant_id)

        target, _ = cls._load_target(actor, tenant_id, user_id, action)

        owner_count = Membership.objects.count_owners(tenant_id)
        ensure_owner_remains(target.role, owner_count)

        membership_id = target.id
        previous = {'user_id': str(target.user_id), 'role': target.role}
        target.delete()

        AuditLog.append(
            action=action,
            resource_type='membership',
            resource_id=membership_id,
            actor=actor,
            tenant_id=tenant_id,
            previous_values=previous,
        )
        notify_on_commit(action, tenant_id, {'user_id': previous['user_id']})

        logger.info(
            "Member removed",
            extra={'tenant_id': str(tenant_id), 'member_user_id': previous['user_id']}
        )


class AuditLogService:
    """
    Tenant-scoped view of the audit trail.
    """

    @classmethod
    def list_for_tenant(cls, actor, action=None, resource_type=None, resource_id=None,
                        actor_id=None, date_from=None, date_to=None):
        """
        Audit entries of the actor's own organization.

        Raises:
            NoActiveTenant: the session names no organization
            Forbidden: INSUFFICIENT_ROLE below admin
        """
        tenant_id = actor.require_tenant()
        role = MembershipService._acting_role(actor, tenant_id)
        if role not in MANAGER_ROLES:
            SecurityLogger.log_permission_denied(actor, 'audit_log.read', 'INSUFFICIENT_ROLE', 'audit_log')
            raise Forbidden(
                "Your role does not allow this operation",
                code='INSUFFICIENT_ROLE',
                details={'required_roles': sorted(MANAGER_ROLES)}
            )

        queryset = AuditLog.objects.for_tenant(tenant_id).select_related('actor')
        if action:
            queryset = queryset.by_action(action)
        if resource_type:
            queryset = queryset.by_resource(resource_type, resource_id)
        if actor_id:
            queryset = queryset.for_actor(actor_id)
        if date_from:
            queryset = queryset.filter(created_at__date__gte=date_from)
        if date_to:
            queryset = queryset.filter(created_at__date__lte=date_to)
        return queryset.order_by('-created_at')
