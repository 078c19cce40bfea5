"""
Tests for the portal routing guard decisions.
"""
import uuid
from unittest import mock

import pytest
from hypothesis import given, strategies as st

from apps.core.exceptions import Unavailable
from apps.rbac.session import SessionResolver
from apps.tenants.routing import RoutingGuard, is_bypassed, section_for_path, sign_in_redirect

portal_paths = st.sampled_from([
    '/', '/hospital', '/hospital/dashboard', '/hospital/equipment/42',
    '/provider/dashboard', '/provider/requests', '/admin/dashboard',
    '/admin/disputes', '/onboarding', '/settings/profile',
])


@pytest.mark.django_db
class TestRoutingGuard:

    def test_no_credential_goes_to_sign_in_with_return_path(self):
        decision = RoutingGuard.decide('/hospital/equipment', None)
        assert not decision.allowed
        assert decision.redirect_to == '/sign-in?returnTo=%2Fhospital%2Fequipment'

    def test_invalid_credential_goes_to_sign_in(self):
        decision = RoutingGuard.decide('/hospital/dashboard', 'forged')
        assert decision.redirect_to.startswith('/sign-in')
        assert decision.reason == 'invalid_session'

    def test_hospital_member_reaches_hospital_section(self, owner):
        token = SessionResolver.issue(owner.user_id, tenant_id=owner.tenant_id, org_role='owner')
        assert RoutingGuard.decide('/hospital/equipment', token).allowed

    def test_hospital_member_bounced_from_provider_and_admin(self, owner):
        token = SessionResolver.issue(owner.user_id, tenant_id=owner.tenant_id, org_role='owner')
        for path in ('/provider/dashboard', '/admin/dashboard'):
            decision = RoutingGuard.decide(path, token)
            assert not decision.allowed
            assert decision.redirect_to == '/hospital/dashboard'

    @pytest.mark.parametrize('path', ['/onboarding', '/settings/profile'])
    def test_tenant_member_kept_in_own_section(self, owner, path):
        token = SessionResolver.issue(owner.user_id, tenant_id=owner.tenant_id, org_role='owner')
        decision = RoutingGuard.decide(path, token)
        assert not decision.allowed
        assert decision.redirect_to == '/hospital/dashboard'
        assert decision.reason == 'wrong_section'

    def test_provider_lands_on_provider_dashboard(self, provider_actor):
        token = SessionResolver.issue(provider_actor.user_id, tenant_id=provider_actor.tenant_id, org_role='owner')
        decision = RoutingGuard.decide('/', token)
        assert decision.redirect_to == '/provider/dashboard'
        assert RoutingGuard.decide('/provider/requests', token).allowed

    def test_platform_staff_only_admin_section(self, platform_support):
        token = SessionResolver.issue(platform_support.user_id, platform_role='platform_support')
        assert RoutingGuard.decide('/admin/disputes', token).allowed
        decision = RoutingGuard.decide('/hospital/dashboard', token)
        assert decision.redirect_to == '/admin/dashboard'

    def test_no_active_tenant_goes_to_onboarding(self, member_user):
        token = SessionResolver.issue(member_user.id)
        assert RoutingGuard.decide('/onboarding', token).allowed
        assert RoutingGuard.decide('/hospital/dashboard', token).redirect_to == '/onboarding'

    def test_vanished_tenant_never_defaults_to_a_kind(self, member_user):
        token = SessionResolver.issue(member_user.id, tenant_id=uuid.uuid4(), org_role='member')
        decision = RoutingGuard.decide('/hospital/dashboard', token)
        assert decision.redirect_to.startswith('/sign-in')
        assert decision.reason == 'tenant_kind_unknown'

    def test_transient_lookup_failure_forces_sign_in(self, owner):
        token = SessionResolver.issue(owner.user_id, tenant_id=owner.tenant_id, org_role='owner')
        with mock.patch(
            'apps.tenants.services.TenantService.get_tenant_kind',
            side_effect=Unavailable('cache down'),
        ):
            decision = RoutingGuard.decide('/hospital/dashboard', token)
        assert decision.redirect_to.startswith('/sign-in')
        assert decision.reason == 'tenant_kind_unavailable'

    @given(path=portal_paths)
    def test_platform_admin_never_lands_outside_admin(self, path):
        token = SessionResolver.issue(uuid.uuid4(), platform_role='platform_admin')
        decision = RoutingGuard.decide(path, token)
        if decision.allowed:
            assert section_for_path(path) == 'admin'
        else:
            assert decision.redirect_to == '/admin/dashboard'

    @given(path=portal_paths)
    def test_hospital_member_never_lands_outside_hospital(self, path):
        tenant_id = uuid.uuid4()
        token = SessionResolver.issue(uuid.uuid4(), tenant_id=tenant_id, org_role='member')
        with mock.patch('apps.tenants.services.TenantService.get_tenant_kind', return_value='hospital'):
            decision = RoutingGuard.decide(path, token)
        if decision.allowed:
            assert section_for_path(path) == 'hospital'
        else:
            assert decision.redirect_to == '/hospital/dashboard'


class TestPathHelpers:

    def test_section_prefix_match_is_segment_aware(self):
        assert section_for_path('/hospital/dashboard') == 'hospital'
        assert section_for_path('/hospitality') is None
        assert section_for_path('/') is None

    def test_bypassed_paths(self):
        assert is_bypassed('/v1/session')
        assert is_bypassed('/sign-in')
        assert is_bypassed('/schema/swagger/')
        assert not is_bypassed('/hospital/dashboard')
        assert not is_bypassed('/sign-inside')

    def test_sign_in_redirect_drops_root(self):
        assert sign_in_redirect('/') == '/sign-in'
        assert sign_in_redirect(None) == '/sign-in'
