"""
Tests for DisputeService.
"""
import pytest

from apps.core.exceptions import Forbidden, InvalidTransition, NotFound, ValidationFailed
from apps.rbac.models import AuditLog
from apps.service_requests.services import DisputeService, ServiceRequestService


@pytest.fixture
def service_request(member, provider_profile):
    return ServiceRequestService.create_service_request(member, {
        'provider_id': provider_profile.id,
        'description': 'MRI coil replacement',
    })


@pytest.fixture
def in_progress_request(service_request, member, provider_actor):
    ServiceRequestService.change_status(provider_actor, service_request.id, 'quoted')
    ServiceRequestService.change_status(member, service_request.id, 'accepted')
    return ServiceRequestService.change_status(provider_actor, service_request.id, 'in_progress')


@pytest.fixture
def dispute(in_progress_request, member):
    return DisputeService.create_dispute(member, in_progress_request.id, 'quality', 'Coil still faulty')


@pytest.mark.django_db
class TestCreateDispute:

    def test_hospital_raises(self, dispute, in_progress_request, hospital):
        assert dispute.status == 'open'
        assert dispute.tenant_id == hospital.id
        in_progress_request.refresh_from_db()
        assert in_progress_request.status == 'in_progress'
        assert AuditLog.objects.filter(action='dispute.created').count() == 1

    def test_pending_request_not_disputable(self, service_request, member):
        with pytest.raises(ValidationFailed) as exc_info:
            DisputeService.create_dispute(member, service_request.id, 'quality', 'Too slow')
        assert exc_info.value.code == 'INVALID_SERVICE_REQUEST_STATUS'

    def test_provider_cannot_raise(self, in_progress_request, provider_actor):
        with pytest.raises(Forbidden) as exc_info:
            DisputeService.create_dispute(provider_actor, in_progress_request.id, 'pricing', 'Unpaid')
        assert exc_info.value.code == 'HOSPITAL_ONLY'

    def test_unknown_type(self, in_progress_request, member):
        with pytest.raises(ValidationFailed):
            DisputeService.create_dispute(member, in_progress_request.id, 'vibes', 'Bad vibes')

    def test_outsider_sees_nothing(self, in_progress_request, outsider):
        with pytest.raises(NotFound):
            DisputeService.create_dispute(outsider, in_progress_request.id, 'quality', 'Hmm')


@pytest.mark.django_db
class TestDisputeLifecycle:

    def test_provider_sees_dispute(self, dispute, provider_actor, outsider):
        assert DisputeService.get_dispute(provider_actor, dispute.id) == dispute
        assert DisputeService.list_disputes(outsider).count() == 0

    def test_investigate_then_resolve(self, dispute, provider_actor, member):
        DisputeService.change_status(provider_actor, dispute.id, 'investigating')
        resolved = DisputeService.change_status(member, dispute.id, 'resolved', notes='Coil replaced again')
        assert resolved.status == 'resolved'
        assert resolved.resolved_at is not None
        assert resolved.resolution_notes == 'Coil replaced again'

    def test_open_cannot_resolve_directly(self, dispute, member):
        with pytest.raises(InvalidTransition):
            DisputeService.change_status(member, dispute.id, 'resolved')

    def test_escalate(self, dispute, member):
        escalated = DisputeService.escalate(member, dispute.id, reason='No response from provider')
        assert escalated.status == 'escalated'
        assert escalated.escalation_reason == 'No response from provider'
        entry = AuditLog.objects.get(action='dispute.escalated')
        assert entry.new_values['status'] == 'escalated'

    def test_escalated_is_final_for_parties(self, dispute, member):
        DisputeService.escalate(member, dispute.id)
        with pytest.raises(InvalidTransition):
            DisputeService.change_status(member, dispute.id, 'investigating')

    def test_platform_support_read_only(self, dispute, platform_support):
        with pytest.raises(Forbidden):
            DisputeService.escalate(platform_support, dispute.id)
