"""
Tests for EquipmentService.
"""
import pytest

from apps.core.exceptions import Forbidden, InvalidTransition, NotFound, ValidationFailed
from apps.equipment.models import Equipment, FailureReport
from apps.equipment.services import EquipmentService
from apps.rbac.models import AuditLog
from apps.workflows.models import StatusHistory


@pytest.fixture
def ventilator(hospital):
    return Equipment.objects.create(tenant=hospital, name='Ventilator V60', category='Respiratory', location='ICU')


@pytest.fixture
def foreign_monitor(other_hospital):
    return Equipment.objects.create(tenant=other_hospital, name='Patient Monitor')


@pytest.mark.django_db
class TestCreateEquipment:

    def test_admin_registers(self, hospital_admin, hospital):
        equipment = EquipmentService.create_equipment(
            hospital_admin, {'name': 'Infusion Pump', 'serial_number': 'IP-001', 'criticality': 'A'}
        )
        assert equipment.tenant_id == hospital.id
        assert equipment.status == 'available'
        entry = AuditLog.objects.get(action='equipment.created')
        assert entry.new_values['serial_number'] == 'IP-001'

    def test_member_cannot_register(self, member):
        with pytest.raises(Forbidden) as exc_info:
            EquipmentService.create_equipment(member, {'name': 'Infusion Pump'})
        assert exc_info.value.code == 'INSUFFICIENT_ROLE'

    def test_blank_name(self, owner):
        with pytest.raises(ValidationFailed):
            EquipmentService.create_equipment(owner, {'name': '  '})


@pytest.mark.django_db
class TestReadEquipment:

    def test_list_is_tenant_scoped(self, member, ventilator, foreign_monitor):
        assert list(EquipmentService.list_equipment(member)) == [ventilator]

    def test_filters(self, member, ventilator):
        assert EquipmentService.list_equipment(member, search='icu').count() == 1
        assert EquipmentService.list_equipment(member, status='damaged').count() == 0
        assert EquipmentService.list_equipment(member, category='respiratory').count() == 1

    def test_foreign_equipment_looks_missing(self, member, foreign_monitor):
        with pytest.raises(NotFound):
            EquipmentService.get_equipment(member, foreign_monitor.id)

    def test_platform_support_reads_everything(self, platform_support, ventilator, foreign_monitor):
        assert EquipmentService.list_equipment(platform_support).count() == 2

    def test_soft_deleted_hidden(self, member, ventilator):
        ventilator.delete()
        with pytest.raises(NotFound):
            EquipmentService.get_equipment(member, ventilator.id)


@pytest.mark.django_db
class TestChangeStatus:

    def test_member_moves_equipment(self, member, ventilator):
        equipment = EquipmentService.change_status(member, ventilator.id, 'maintenance', notes='Filter swap')
        assert equipment.status == 'maintenance'
        assert [h.new_status for h in EquipmentService.history(member, ventilator.id)] == ['maintenance']

    def test_retiring_needs_manager(self, member, hospital_admin, ventilator):
        with pytest.raises(Forbidden):
            EquipmentService.change_status(member, ventilator.id, 'retired')
        equipment = EquipmentService.change_status(hospital_admin, ventilator.id, 'retired')
        assert equipment.status == 'retired'

    def test_retired_is_final(self, owner, ventilator):
        EquipmentService.change_status(owner, ventilator.id, 'retired')
        with pytest.raises(InvalidTransition):
            EquipmentService.change_status(owner, ventilator.id, 'available')

    def test_foreign_equipment_looks_missing(self, member, foreign_monitor):
        with pytest.raises(NotFound):
            EquipmentService.change_status(member, foreign_monitor.id, 'maintenance')
        foreign_monitor.refresh_from_db()
        assert foreign_monitor.status == 'available'

    def test_platform_support_cannot_write(self, platform_support, ventilator):
        with pytest.raises(Forbidden) as exc_info:
            EquipmentService.change_status(platform_support, ventilator.id, 'maintenance')
        assert exc_info.value.code == 'PLATFORM_ADMIN_ONLY'

    def test_suspended_hospital_cannot_write(self, member, hospital, ventilator):
        hospital.lifecycle_status = 'suspended'
        hospital.save()
        with pytest.raises(Forbidden) as exc_info:
            EquipmentService.change_status(member, ventilator.id, 'maintenance')
        assert exc_info.value.code == 'TENANT_SUSPENDED'


@pytest.mark.django_db
class TestReportFailure:

    @pytest.mark.parametrize('urgency', ['high', 'critical'])
    def test_severe_failure_marks_damaged(self, member, ventilator, urgency):
        report, equipment = EquipmentService.report_failure(member, ventilator.id, urgency, 'No airflow')

        assert equipment.status == 'damaged'
        assert report.equipment_id == ventilator.id
        history = StatusHistory.objects.for_entity('equipment', ventilator.id).get()
        assert history.new_status == 'damaged'
        assert str(report.id) in history.notes
        assert AuditLog.objects.filter(action='equipment.failure_reported').count() == 1
        assert AuditLog.objects.filter(action='equipment.status_changed').count() == 1

    @pytest.mark.parametrize('urgency', ['low', 'medium'])
    def test_minor_failure_keeps_status(self, member, ventilator, urgency):
        _, equipment = EquipmentService.report_failure(member, ventilator.id, urgency, 'Squeaky wheel')
        assert equipment.status == 'available'
        assert not StatusHistory.objects.exists()

    def test_already_damaged_not_transitioned_again(self, member, ventilator):
        EquipmentService.report_failure(member, ventilator.id, 'high', 'No airflow')
        _, equipment = EquipmentService.report_failure(member, ventilator.id, 'critical', 'Smoke')
        assert equipment.status == 'damaged'
        assert FailureReport.objects.filter(equipment=ventilator).count() == 2
        assert StatusHistory.objects.count() == 1

    def test_unknown_urgency(self, member, ventilator):
        with pytest.raises(ValidationFailed):
            EquipmentService.report_failure(member, ventilator.id, 'apocalyptic', 'Gone')
        assert not FailureReport.objects.exists()

    def test_foreign_equipment(self, member, foreign_monitor):
        with pytest.raises(NotFound):
            EquipmentService.report_failure(member, foreign_monitor.id, 'high', 'Broken')
