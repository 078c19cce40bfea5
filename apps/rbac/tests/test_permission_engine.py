"""
Property tests for the pure permission checks.
"""
import uuid

import pytest
from hypothesis import given, strategies as st

from apps.core.exceptions import LastOwnerViolation
from apps.rbac.permissions import (
    can_assign_role,
    can_manage_member,
    can_mutate_tenant_resource,
    can_read_tenant_resource,
    ensure_owner_remains,
)
from apps.rbac.roles import MANAGER_ROLES
from apps.rbac.session import Actor

roles = st.sampled_from(['owner', 'admin', 'member'])
ids = st.uuids().map(str)
platform_roles = st.sampled_from([None, 'platform_admin', 'platform_support'])

# owner > admin > member
RANK = {'owner': 3, 'admin': 2, 'member': 1}


class TestCanManageMember:

    @given(roles, roles, ids)
    def test_self_target_always_denied(self, actor_role, target_role, user_id):
        assert can_manage_member(actor_role, target_role, user_id, user_id) is False

    @given(roles, ids, ids)
    def test_owner_manages_everyone_else(self, target_role, actor_id, target_id):
        if actor_id != target_id:
            assert can_manage_member('owner', target_role, actor_id, target_id) is True

    @given(roles, ids, ids)
    def test_admin_manages_members_only(self, target_role, actor_id, target_id):
        if actor_id != target_id:
            assert can_manage_member('admin', target_role, actor_id, target_id) is (target_role == 'member')

    @given(roles, ids, ids)
    def test_member_manages_no_one(self, target_role, actor_id, target_id):
        assert can_manage_member('member', target_role, actor_id, target_id) is False

    @given(roles, roles, ids, ids)
    def test_never_manages_a_higher_role(self, actor_role, target_role, actor_id, target_id):
        if can_manage_member(actor_role, target_role, actor_id, target_id):
            assert RANK[actor_role] >= RANK[target_role]

    def test_unknown_target_role_denied(self):
        assert can_manage_member('owner', 'superuser', 'a', 'b') is False


class TestCanAssignRole:

    @given(roles)
    def test_owner_assigns_anything(self, new_role):
        assert can_assign_role('owner', new_role) is True

    @given(roles)
    def test_admin_never_grants_owner(self, new_role):
        assert can_assign_role('admin', new_role) is (new_role != 'owner')

    @given(roles)
    def test_member_grants_nothing(self, new_role):
        assert can_assign_role('member', new_role) is False

    def test_unknown_role_rejected(self):
        assert can_assign_role('owner', 'root') is False


class TestEnsureOwnerRemains:

    @given(st.sampled_from(['admin', 'member', None]))
    def test_last_owner_cannot_be_demoted_or_removed(self, new_role):
        with pytest.raises(LastOwnerViolation):
            ensure_owner_remains('owner', 1, new_role=new_role)

    @given(st.integers(min_value=2, max_value=50), st.sampled_from(['admin', 'member', None]))
    def test_extra_owners_can_leave(self, owner_count, new_role):
        ensure_owner_remains('owner', owner_count, new_role=new_role)

    @given(st.sampled_from(['admin', 'member']), st.integers(min_value=0, max_value=5))
    def test_non_owners_unaffected(self, target_role, owner_count):
        ensure_owner_remains(target_role, owner_count)

    def test_owner_to_owner_is_a_no_op(self):
        ensure_owner_remains('owner', 1, new_role='owner')


class TestTenantResourceChecks:

    @given(ids, ids, roles)
    def test_platform_admin_mutates_any_tenant(self, user_id, tenant_id, role):
        actor = Actor(user_id=user_id, platform_role='platform_admin')
        assert can_mutate_tenant_resource(actor, tenant_id, MANAGER_ROLES) is True

    @given(ids, ids)
    def test_platform_support_never_mutates(self, user_id, tenant_id):
        actor = Actor(user_id=user_id, tenant_id=tenant_id, org_role='owner', platform_role='platform_support')
        assert can_mutate_tenant_resource(actor, tenant_id) is False
        assert can_read_tenant_resource(actor, str(uuid.uuid4())) is True

    @given(ids, ids, ids, roles)
    def test_other_tenant_denied(self, user_id, own_tenant, other_tenant, role):
        actor = Actor(user_id=user_id, tenant_id=own_tenant, org_role=role)
        if own_tenant != other_tenant:
            assert can_mutate_tenant_resource(actor, other_tenant) is False
            assert can_read_tenant_resource(actor, other_tenant) is False

    @given(ids, ids, roles)
    def test_required_roles_respected(self, user_id, tenant_id, role):
        actor = Actor(user_id=user_id, tenant_id=tenant_id, org_role=role)
        assert can_mutate_tenant_resource(actor, tenant_id) is True
        assert can_mutate_tenant_resource(actor, tenant_id, MANAGER_ROLES) is (role in MANAGER_ROLES)

    @given(ids, platform_roles)
    def test_no_active_tenant_reads_nothing_without_platform_role(self, tenant_id, platform_role):
        actor = Actor(user_id=str(uuid.uuid4()), platform_role=platform_role)
        assert can_read_tenant_resource(actor, tenant_id) is (platform_role is not None)

    def test_missing_actor_denied(self):
        assert can_mutate_tenant_resource(None, 'x') is False
        assert can_read_tenant_resource(None, 'x') is False
