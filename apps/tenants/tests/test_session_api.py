"""
API tests for session, routing and organization endpoints.
"""
import pytest
from django.conf import settings

from apps.rbac.session import SessionResolver


@pytest.mark.django_db
class TestSessionEndpoints:

    def test_session_summary(self, auth_client, member, hospital):
        response = auth_client(member).get('/v1/session')
        assert response.status_code == 200
        body = response.json()
        assert body['active_tenant']['kind'] == 'hospital'
        assert body['org_role'] == 'member'

    def test_route_without_credential(self, api_client):
        response = api_client.get('/v1/session/route', {'path': '/provider/dashboard'})
        assert response.status_code == 200
        assert response.json() == {
            'allowed': False,
            'redirect_to': '/sign-in?returnTo=%2Fprovider%2Fdashboard',
            'reason': 'no_credential',
        }

    def test_route_with_bad_credential_is_still_a_decision(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION='Bearer forged')
        response = api_client.get('/v1/session/route', {'path': '/hospital'})
        assert response.status_code == 200
        assert response.json()['reason'] == 'invalid_session'

    def test_route_for_hospital_member(self, auth_client, member):
        response = auth_client(member).get('/v1/session/route', {'path': '/hospital/equipment'})
        assert response.json()['allowed'] is True

    def test_switch_tenant_sets_cookie(self, auth_client, member, member_user, make_member, provider_tenant):
        make_member(provider_tenant, member_user, 'admin')

        response = auth_client(member).post(
            '/v1/session/switch-tenant', {'tenant_id': str(provider_tenant.id)}, format='json'
        )

        assert response.status_code == 200
        assert response.json()['org_role'] == 'admin'
        cookie = response.cookies[settings.SESSION_TOKEN_COOKIE_NAME]
        assert cookie['httponly']
        assert SessionResolver.resolve(cookie.value).tenant_id == str(provider_tenant.id)

    def test_switch_to_foreign_tenant_404(self, auth_client, member, other_hospital):
        response = auth_client(member).post(
            '/v1/session/switch-tenant', {'tenant_id': str(other_hospital.id)}, format='json'
        )
        assert response.status_code == 404

    def test_create_organization(self, auth_client, make_actor, make_user):
        actor = make_actor(make_user('founder@example.test'))
        response = auth_client(actor).post(
            '/v1/organizations', {'name': 'Da Nang Hospital', 'kind': 'hospital'}, format='json'
        )
        assert response.status_code == 201
        assert response.json()['tenant']['lifecycle_status'] == 'trial'
        assert response.json()['org_role'] == 'owner'

    def test_create_organization_bad_kind(self, auth_client, make_actor, make_user):
        actor = make_actor(make_user('founder@example.test'))
        response = auth_client(actor).post(
            '/v1/organizations', {'name': 'Da Nang Pharmacy', 'kind': 'pharmacy'}, format='json'
        )
        assert response.status_code == 400
        assert response.json()['error']['code'] == 'VALIDATION_ERROR'
