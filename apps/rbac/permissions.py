"""
Permission engine.

Pure decisions over roles and identifiers. Nothing here touches the
database; callers evaluate these checks and then perform their own locked
re-reads (owner counts, current status) inside the write transaction.
"""
from apps.core.exceptions import LastOwnerViolation
from apps.rbac.roles import ALL_ORG_ROLES, OrgRole, PlatformRole


def _same_id(a, b):
    return a is not None and b is not None and str(a) == str(b)


def can_manage_member(actor_role, target_role, actor_id, target_id) -> bool:
    """
    Decide whether actor_role may change or remove a target_role member.

    Self-targeting is always denied. Owners may manage anyone; admins may
    manage members only; members may manage no one.
    """
    if _same_id(actor_id, target_id):
        return False
    if target_role not in ALL_ORG_ROLES:
        return False
    if actor_role == OrgRole.OWNER:
        return True
    if actor_role == OrgRole.ADMIN:
        return target_role == OrgRole.MEMBER
    return False


def can_assign_role(actor_role, new_role) -> bool:
    """
    Decide whether actor_role may grant new_role (on add or role change).

    Owners grant any role, admins grant member or admin, members grant nothing.
    """
    if new_role not in ALL_ORG_ROLES:
        return False
    if actor_role == OrgRole.OWNER:
        return True
    if actor_role == OrgRole.ADMIN:
        return new_role in (OrgRole.MEMBER, OrgRole.ADMIN)
    return False


def ensure_owner_remains(target_role, owner_count, new_role=None):
    """
    Reject removing or demoting the organization's last owner.

    ``new_role`` is None for a removal. Must be evaluated on an owner count
    read inside the same transaction as the membership write.

    Raises:
        LastOwnerViolation: the change would leave zero owners
    """
    if target_role != OrgRole.OWNER:
        return
    if new_role == OrgRole.OWNER:
        return
    if owner_count <= 1:
        raise LastOwnerViolation(
            "An organization must keep at least one owner",
            details={'owner_count': owner_count}
        )


def can_mutate_tenant_resource(actor, resource_tenant_id, required_roles=None) -> bool:
    """
    Decide whether actor may mutate a resource owned by resource_tenant_id.

    Platform admins bypass tenant equality entirely. Platform support is
    read-only and never mutates tenant resources. Everyone else must be acting
    within the resource's tenant and, when required_roles is given, hold one
    of those roles.
    """
    if actor is None:
        return False
    if actor.platform_role == PlatformRole.PLATFORM_ADMIN:
        return True
    if actor.platform_role == PlatformRole.PLATFORM_SUPPORT:
        return False
    if not _same_id(actor.tenant_id, resource_tenant_id):
        return False
    if required_roles is not None and actor.org_role not in required_roles:
        return False
    return True


def can_read_tenant_resource(actor, resource_tenant_id) -> bool:
    """Any platform role reads across tenants; others read only their own tenant."""
    if actor is None:
        return False
    if actor.is_platform:
        return True
    return _same_id(actor.tenant_id, resource_tenant_id)
