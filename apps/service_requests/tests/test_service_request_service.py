"""
Tests for ServiceRequestService: creation, party rules and the status table.
"""
import pytest

from apps.core.exceptions import Forbidden, InvalidTransition, NotFound, ValidationFailed
from apps.equipment.models import Equipment
from apps.rbac.models import AuditLog
from apps.service_requests.models import ServiceRequest
from apps.service_requests.services import ServiceRequestService
from apps.workflows.models import StatusHistory


@pytest.fixture
def ventilator(hospital):
    return Equipment.objects.create(tenant=hospital, name='Ventilator V60')


@pytest.fixture
def service_request(member, ventilator, provider_profile):
    return ServiceRequestService.create_service_request(member, {
        'equipment_id': ventilator.id,
        'provider_id': provider_profile.id,
        'description': 'Pressure sensor drift',
        'priority': 'high',
    })


def walk(actor_by_status, service_request, *statuses):
    for status in statuses:
        ServiceRequestService.change_status(actor_by_status[status], service_request.id, status)


@pytest.fixture
def sides(member, provider_actor):
    return {
        'quoted': provider_actor,
        'accepted': member,
        'in_progress': provider_actor,
        'completed': provider_actor,
        'cancelled': member,
        'disputed': member,
    }


@pytest.mark.django_db
class TestCreateServiceRequest:

    def test_created_pending(self, service_request, hospital, ventilator, member):
        assert service_request.status == 'pending'
        assert service_request.tenant_id == hospital.id
        assert service_request.equipment_id == ventilator.id
        assert str(service_request.requested_by_id) == member.user_id
        assert service_request.status_changed_at is not None
        assert AuditLog.objects.filter(action='service_request.created').count() == 1

    def test_provider_cannot_create(self, provider_actor):
        with pytest.raises(Forbidden) as exc_info:
            ServiceRequestService.create_service_request(provider_actor, {'description': 'Calibrate'})
        assert exc_info.value.code == 'HOSPITAL_ONLY'

    def test_foreign_equipment(self, outsider, ventilator):
        with pytest.raises(NotFound):
            ServiceRequestService.create_service_request(
                outsider, {'equipment_id': ventilator.id, 'description': 'Fix it'}
            )

    def test_provider_not_accepting(self, member, provider_profile):
        provider_profile.is_accepting_requests = False
        provider_profile.save()
        with pytest.raises(NotFound):
            ServiceRequestService.create_service_request(
                member, {'provider_id': provider_profile.id, 'description': 'Fix it'}
            )

    def test_description_required(self, member):
        with pytest.raises(ValidationFailed):
            ServiceRequestService.create_service_request(member, {'description': ' '})

    def test_suspended_hospital(self, member, hospital):
        hospital.lifecycle_status = 'suspended'
        hospital.save()
        with pytest.raises(Forbidden) as exc_info:
            ServiceRequestService.create_service_request(member, {'description': 'Fix it'})
        assert exc_info.value.code == 'TENANT_SUSPENDED'
        assert not ServiceRequest.objects.exists()


@pytest.mark.django_db
class TestVisibility:

    def test_both_sides_see_the_request(self, service_request, member, provider_actor):
        assert ServiceRequestService.get_service_request(member, service_request.id) == service_request
        assert ServiceRequestService.get_service_request(provider_actor, service_request.id) == service_request
        assert list(ServiceRequestService.list_service_requests(provider_actor)) == [service_request]

    def test_third_party_sees_nothing(self, service_request, outsider):
        with pytest.raises(NotFound):
            ServiceRequestService.get_service_request(outsider, service_request.id)
        assert ServiceRequestService.list_service_requests(outsider).count() == 0

    def test_unassigned_provider_sees_nothing(self, member, make_tenant, make_user, make_member, make_actor):
        request = ServiceRequestService.create_service_request(member, {'description': 'Open bid'})
        rival = make_tenant('Rival Biomed', kind='provider')
        rival_user = make_user('tech@rival.test')
        make_member(rival, rival_user, 'owner')
        with pytest.raises(NotFound):
            ServiceRequestService.get_service_request(make_actor(rival_user, rival, 'owner'), request.id)


@pytest.mark.django_db
class TestLifecycle:

    def test_happy_path(self, service_request, sides, member):
        walk(sides, service_request, 'quoted', 'accepted', 'in_progress', 'completed')

        service_request.refresh_from_db()
        assert service_request.status == 'completed'
        history = [h.new_status for h in ServiceRequestService.history(member, service_request.id)]
        assert history == ['quoted', 'accepted', 'in_progress', 'completed']
        assert AuditLog.objects.filter(action='service_request.status_changed').count() == 4

    def test_completed_can_be_disputed(self, service_request, sides, member):
        walk(sides, service_request, 'quoted', 'accepted', 'in_progress', 'completed')
        updated = ServiceRequestService.change_status(member, service_request.id, 'disputed')
        assert updated.status == 'disputed'

    def test_completed_cannot_be_cancelled(self, service_request, sides, member):
        walk(sides, service_request, 'quoted', 'accepted', 'in_progress', 'completed')
        with pytest.raises(InvalidTransition) as exc_info:
            ServiceRequestService.cancel(member, service_request.id)
        assert exc_info.value.details['from_status'] == 'completed'

    def test_skipping_steps_rejected(self, service_request, member):
        with pytest.raises(InvalidTransition):
            ServiceRequestService.change_status(member, service_request.id, 'accepted')
        assert not StatusHistory.objects.exists()

    def test_provider_cannot_cancel(self, service_request, provider_actor):
        with pytest.raises(Forbidden) as exc_info:
            ServiceRequestService.cancel(provider_actor, service_request.id)
        assert exc_info.value.code == 'TRANSITION_NOT_PERMITTED_FOR_PARTY'

    def test_hospital_cannot_quote(self, service_request, owner):
        with pytest.raises(Forbidden) as exc_info:
            ServiceRequestService.change_status(owner, service_request.id, 'quoted')
        assert exc_info.value.code == 'TRANSITION_NOT_PERMITTED_FOR_PARTY'

    def test_hospital_cancels_pending(self, service_request, member):
        updated = ServiceRequestService.cancel(member, service_request.id, reason='Fixed in-house')
        assert updated.status == 'cancelled'
        assert StatusHistory.objects.get().notes == 'Fixed in-house'

    def test_platform_admin_acts_for_either_side(self, service_request, platform_admin):
        ServiceRequestService.change_status(platform_admin, service_request.id, 'quoted')
        updated = ServiceRequestService.change_status(platform_admin, service_request.id, 'accepted')
        assert updated.status == 'accepted'

    def test_platform_support_read_only(self, service_request, platform_support):
        assert ServiceRequestService.get_service_request(platform_support, service_request.id)
        with pytest.raises(Forbidden) as exc_info:
            ServiceRequestService.change_status(platform_support, service_request.id, 'quoted')
        assert exc_info.value.code == 'PLATFORM_ADMIN_ONLY'

    def test_unknown_status(self, service_request, member):
        with pytest.raises(ValidationFailed):
            ServiceRequestService.change_status(member, service_request.id, 'archived')

    def test_suspended_provider_cannot_progress(self, service_request, provider_actor, provider_tenant):
        provider_tenant.lifecycle_status = 'suspended'
        provider_tenant.save()
        with pytest.raises(Forbidden) as exc_info:
            ServiceRequestService.change_status(provider_actor, service_request.id, 'quoted')
        assert exc_info.value.code == 'TENANT_SUSPENDED'
