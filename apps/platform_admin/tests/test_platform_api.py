"""
API tests for the platform operator endpoints.
"""
import pytest

from apps.rbac.models import Membership
from apps.service_requests.services import DisputeService, ServiceRequestService


@pytest.fixture
def escalated_dispute(member, provider_actor, provider_profile):
    request = ServiceRequestService.create_service_request(
        member, {'provider_id': provider_profile.id, 'description': 'X-ray tube failure'}
    )
    ServiceRequestService.change_status(provider_actor, request.id, 'quoted')
    ServiceRequestService.change_status(member, request.id, 'accepted')
    ServiceRequestService.change_status(provider_actor, request.id, 'in_progress')
    dispute = DisputeService.create_dispute(member, request.id, 'timeline', 'Three weeks overdue')
    return DisputeService.escalate(member, dispute.id, reason='No reply')


@pytest.mark.django_db
class TestPlatformEndpoints:

    def test_tenant_session_refused(self, auth_client, owner):
        response = auth_client(owner).get('/v1/platform/service-requests')
        assert response.status_code == 403
        assert response.json()['error']['code'] == 'PLATFORM_ROLE_REQUIRED'

    def test_support_reads_service_requests(self, auth_client, platform_support, escalated_dispute):
        response = auth_client(platform_support).get('/v1/platform/service-requests', {'bottleneck': 'false'})
        assert response.status_code == 200
        row = response.json()['results'][0]
        assert row['hospital_name'] == 'Bach Mai Hospital'
        assert row['is_bottleneck'] is False

    def test_escalated_queue_and_detail(self, auth_client, platform_support, escalated_dispute):
        client = auth_client(platform_support)
        queue = client.get('/v1/platform/disputes/escalated').json()['results']
        assert [row['id'] for row in queue] == [str(escalated_dispute.id)]

        detail = client.get(f'/v1/platform/disputes/{escalated_dispute.id}').json()
        assert detail['provider']['display_name'] == 'MedTech Services'
        assert detail['arbitration_history'][-1]['action'] == 'dispute.escalated'

    def test_support_cannot_resolve(self, auth_client, platform_support, escalated_dispute):
        response = auth_client(platform_support).post(
            f'/v1/platform/disputes/{escalated_dispute.id}/resolve',
            {'resolution': 'dismiss', 'reason': 'No'},
            format='json',
        )
        assert response.status_code == 403
        assert response.json()['error']['code'] == 'PLATFORM_ADMIN_ONLY'

    def test_admin_resolves(self, auth_client, platform_admin, escalated_dispute):
        response = auth_client(platform_admin).post(
            f'/v1/platform/disputes/{escalated_dispute.id}/resolve',
            {'resolution': 'refund', 'reason': 'Provider missed the deadline', 'refund_amount': '1200000.00'},
            format='json',
        )
        assert response.status_code == 200
        assert response.json()['resolution'] == 'refund'

    def test_partial_refund_without_amount(self, auth_client, platform_admin, escalated_dispute):
        response = auth_client(platform_admin).post(
            f'/v1/platform/disputes/{escalated_dispute.id}/resolve',
            {'resolution': 'partial_refund', 'reason': 'Split the cost'},
            format='json',
        )
        assert response.status_code == 400
        assert response.json()['error']['code'] == 'VALIDATION_ERROR'

    def test_suspend_twice_conflicts(self, auth_client, platform_admin, hospital):
        client = auth_client(platform_admin)
        assert client.post(f'/v1/platform/tenants/{hospital.id}/suspend', {'reason': 'Audit'}, format='json').status_code == 200
        response = client.post(f'/v1/platform/tenants/{hospital.id}/suspend', {}, format='json')
        assert response.status_code == 409

    def test_onboard_tenant(self, auth_client, platform_admin):
        response = auth_client(platform_admin).post(
            '/v1/platform/tenants',
            {'name': 'Can Tho Clinic', 'kind': 'hospital', 'owner_email': 'director@cantho.test'},
            format='json'
        )
        assert response.status_code == 201
        assert Membership.objects.count_owners(response.json()['id']) == 1

    def test_onboard_tenant_without_owner(self, auth_client, platform_admin):
        response = auth_client(platform_admin).post(
            '/v1/platform/tenants', {'name': 'Can Tho Clinic', 'kind': 'hospital'}, format='json'
        )
        assert response.status_code == 400
        assert response.json()['error']['code'] == 'VALIDATION_ERROR'

    def test_audit_log(self, auth_client, platform_support, escalated_dispute):
        response = auth_client(platform_support).get('/v1/platform/audit-log', {'resource_type': 'dispute'})
        assert response.status_code == 200
        assert {row['action'] for row in response.json()['results']} == {'dispute.created', 'dispute.escalated'}
