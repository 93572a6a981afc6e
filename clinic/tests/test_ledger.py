import pytest
from rest_framework.exceptions import NotFound, ValidationError

from clinic.exceptions import InsufficientQuota
from clinic.models import HospitalAdmin
from clinic.services import accounts, ledger

from .conftest import PASSWORD

pytestmark = pytest.mark.django_db


def counters(holder):
    holder.refresh_from_db()
    return (holder.total_tests, holder.tests_allocated, holder.tests_done, holder.tests_remaining)


def set_counters(holder, **values):
    type(holder).objects.filter(pk=holder.pk).update(**values)
    holder.refresh_from_db()


def test_new_super_admin_is_seeded(super_admin):
    assert super_admin.test_metrics() == {'totalTests': 50, 'testsAllocated': 0, 'testsDone': 0, 'testsRemaining': 50}


def test_hospital_admin_creation_checks_but_does_not_draw_down(super_admin):
    ha = accounts.create_hospital_admin(super_admin, name='East', email='east@example.com',
                                        password=PASSWORD, total_tests=30)
    assert counters(ha) == (30, 0, 0, 30)
    assert counters(super_admin) == (50, 0, 0, 50)


def test_hospital_admin_creation_over_pool_is_refused(super_admin):
    with pytest.raises(InsufficientQuota):
        accounts.create_hospital_admin(super_admin, name='West', email='west@example.com',
                                       password=PASSWORD, total_tests=51)
    assert not HospitalAdmin.objects.filter(email='west@example.com').exists()


def test_doctor_allocation_moves_counters(hospital_admin, doctor):
    set_counters(hospital_admin, tests_allocated=10, tests_remaining=10)
    ledger.allocate_to_doctor(hospital_admin, doctor, 4)
    assert (hospital_admin.tests_allocated, hospital_admin.tests_remaining) == (6, 6)
    assert (doctor.tests_allocated, doctor.tests_remaining) == (4, 4)
    # passed instances reflect what was stored
    assert counters(hospital_admin)[1::2] == (6, 6)
    assert counters(doctor)[1::2] == (4, 4)


def test_doctor_allocation_over_remaining_leaves_both_unchanged(hospital_admin, doctor):
    set_counters(hospital_admin, tests_remaining=3)
    before = counters(hospital_admin), counters(doctor)
    with pytest.raises(InsufficientQuota):
        ledger.allocate_to_doctor(hospital_admin, doctor, 5)
    assert (counters(hospital_admin), counters(doctor)) == before


@pytest.mark.parametrize('count', [0, -2, '3', 2.5, True])
def test_doctor_allocation_rejects_bad_counts(hospital_admin, doctor, count):
    before = counters(hospital_admin), counters(doctor)
    with pytest.raises(ValidationError):
        ledger.allocate_to_doctor(hospital_admin, doctor, count)
    assert (counters(hospital_admin), counters(doctor)) == before


def test_doctor_of_other_centre_is_not_found(super_admin, hospital_admin, doctor):
    other = accounts.create_hospital_admin(super_admin, name='South', email='south@example.com',
                                           password=PASSWORD, total_tests=5)
    with pytest.raises(NotFound):
        ledger.allocate_to_doctor(other, doctor, 1)


def test_super_admin_allocation_positive(super_admin, hospital_admin):
    ledger.allocate_to_hospital_admin(super_admin, hospital_admin, 5)
    assert counters(super_admin) == (50, 5, 0, 45)
    assert counters(hospital_admin) == (25, 0, 0, 25)


def test_super_admin_deallocation_is_clamped(super_admin, hospital_admin):
    ledger.allocate_to_hospital_admin(super_admin, hospital_admin, -5)
    # grantor's allocated count would be -5 and is floored at zero
    assert counters(super_admin) == (50, 0, 0, 55)
    assert counters(hospital_admin) == (15, 0, 0, 15)


def test_super_admin_deallocation_beyond_holdings_leaves_both_unchanged(super_admin, hospital_admin):
    before = counters(super_admin), counters(hospital_admin)
    with pytest.raises(InsufficientQuota):
        ledger.allocate_to_hospital_admin(super_admin, hospital_admin, -21)
    assert (counters(super_admin), counters(hospital_admin)) == before


def test_super_admin_allocation_over_pool_leaves_both_unchanged(super_admin, hospital_admin):
    before = counters(super_admin), counters(hospital_admin)
    with pytest.raises(InsufficientQuota):
        ledger.allocate_to_hospital_admin(super_admin, hospital_admin, 51)
    assert (counters(super_admin), counters(hospital_admin)) == before


def test_super_admin_cannot_touch_foreign_centre(hospital_admin):
    other = accounts.create_super_admin(name='Other', email='other@example.com', password=PASSWORD)
    with pytest.raises(NotFound):
        ledger.allocate_to_hospital_admin(other, hospital_admin, 1)


def test_record_test_completion_is_not_floored(doctor):
    set_counters(doctor, tests_done=2, tests_remaining=3)
    ledger.record_test_completion(doctor)
    assert (doctor.tests_done, doctor.tests_remaining) == (3, 2)
    for _ in range(3):
        ledger.record_test_completion(doctor)
    assert counters(doctor)[2:] == (6, -1)


def test_transfer_broadcasts_and_audits_after_commit(monkeypatch, django_capture_on_commit_callbacks,
                                                     hospital_admin, doctor):
    sent = []
    monkeypatch.setattr(ledger, 'broadcast_ledger_update', lambda reason, *holders: sent.append((reason, holders)))
    set_counters(hospital_admin, tests_remaining=10)
    with django_capture_on_commit_callbacks(execute=True):
        ledger.allocate_to_doctor(hospital_admin, doctor, 2, actor=hospital_admin.person)
    assert sent and sent[0][0] == ledger.HOSPITAL_TO_DOCTOR.name
    assert [type(h).__name__ for h in sent[0][1]] == ['HospitalAdmin', 'Doctor']
    event = hospital_admin.person.auditevent_set.get(action='allocate_tests')
    assert event.detail['count'] == 2
    assert event.detail['grantee']['testsRemaining'] == 2


def test_failed_precondition_schedules_nothing(django_capture_on_commit_callbacks,
                                               hospital_admin, doctor):
    set_counters(hospital_admin, tests_remaining=0)
    with django_capture_on_commit_callbacks() as callbacks:
        with pytest.raises(InsufficientQuota):
            ledger.allocate_to_doctor(hospital_admin, doctor, 1)
    assert callbacks == []


@pytest.mark.parametrize('total', [0, -3])
def test_hospital_admin_needs_positive_seed(super_admin, total):
    with pytest.raises(ValidationError):
        accounts.create_hospital_admin(super_admin, name='Zero', email='zero@example.com',
                                       password=PASSWORD, total_tests=total)
