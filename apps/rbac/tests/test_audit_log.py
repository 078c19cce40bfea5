"""
Tests for the append-only audit log.
"""
from unittest import mock

import pytest
from django.db import DatabaseError, transaction

from apps.core.exceptions import Unavailable
from apps.rbac.models import AuditLog, AuditLogImmutable, Membership
from apps.rbac.services import MembershipService


@pytest.mark.django_db
class TestAppend:

    def test_append_inside_transaction(self, owner, hospital):
        with transaction.atomic():
            entry_id = AuditLog.append(
                action='organization.settings_viewed',
                resource_type='tenant',
                resource_id=hospital.id,
                actor=owner,
                tenant_id=hospital.id,
                metadata={'source': 'test'},
            )

        entry = AuditLog.objects.get(id=entry_id)
        assert entry.resource_id == str(hospital.id)
        assert str(entry.actor_id) == owner.user_id
        assert entry.metadata == {'source': 'test', 'org_role': 'owner'}

    def test_platform_role_recorded(self, platform_admin, hospital):
        with transaction.atomic():
            entry_id = AuditLog.append('tenant.suspended', 'tenant', hospital.id, actor=platform_admin)
        assert AuditLog.objects.get(id=entry_id).metadata == {'platform_role': 'platform_admin'}


@pytest.mark.django_db(transaction=True)
class TestAppendOutsideTransaction:

    def test_refused_without_transaction(self, hospital):
        with pytest.raises(RuntimeError):
            AuditLog.append('tenant.viewed', 'tenant', hospital.id)
        assert not AuditLog.objects.exists()


@pytest.mark.django_db
class TestImmutability:

    @pytest.fixture
    def entry(self, hospital):
        with transaction.atomic():
            entry_id = AuditLog.append('tenant.created', 'tenant', hospital.id, tenant_id=hospital.id)
        return AuditLog.objects.get(id=entry_id)

    def test_instance_save_refused(self, entry):
        entry.action = 'tenant.deleted'
        with pytest.raises(AuditLogImmutable):
            entry.save()

    def test_instance_delete_refused(self, entry):
        with pytest.raises(AuditLogImmutable):
            entry.delete()
        assert AuditLog.objects.filter(id=entry.id).exists()

    def test_queryset_update_refused(self, entry):
        with pytest.raises(AuditLogImmutable):
            AuditLog.objects.filter(id=entry.id).update(action='tenant.deleted')

    def test_queryset_delete_refused(self, entry):
        with pytest.raises(AuditLogImmutable):
            AuditLog.objects.all().delete()


@pytest.mark.django_db(transaction=True)
class TestAtomicity:

    def test_failed_audit_write_rolls_back_membership_change(self, owner, hospital, member_user):
        with mock.patch.object(AuditLog, 'append', side_effect=DatabaseError('audit store down')):
            with pytest.raises(DatabaseError):
                MembershipService.change_role(owner, hospital.id, member_user.id, 'admin')

        assert Membership.objects.get(user=member_user).role == 'member'

    def test_failed_audit_write_surfaces_as_unavailable(self, auth_client, owner, hospital, member_user):
        with mock.patch.object(AuditLog, 'append', side_effect=DatabaseError('audit store down')):
            response = auth_client(owner).delete(
                f'/v1/organizations/{hospital.id}/members/{member_user.id}'
            )

        assert response.status_code == Unavailable.status_code
        assert response.json()['error']['code'] == 'UNAVAILABLE'
        assert Membership.objects.filter(user=member_user).exists()
