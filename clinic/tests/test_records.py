from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from clinic.models import Appointment, KneeTest, Patient, RawData
from clinic.services import accounts, records
from clinic.services.appointments import create_appointment

from .conftest import PASSWORD, PATIENT_FIELDS

pytestmark = pytest.mark.django_db

Person = get_user_model()

PEAKS = {
    'max_range_of_motion': 112.5,
    'max_linear_displacement': 4.2,
    'max_angular_displacement': 9.8,
}


def book(hospital_admin, doctor, **extra):
    return create_appointment(hospital_admin, doctor_id=doctor.pk, appointment_date=timezone.now(), **extra)


def test_appointment_without_code_creates_one_patient(hospital_admin, doctor):
    persons, patients = Person.objects.count(), Patient.objects.count()
    appointment = book(hospital_admin, doctor, name='New Person', **PATIENT_FIELDS)
    assert Person.objects.count() == persons + 1
    assert Patient.objects.count() == patients + 1
    patient = Patient.objects.get(patient_code=appointment.patient_code)
    assert patient.person_id == appointment.person_id
    assert patient.doctor_id == doctor.pk
    assert patient.person.role == Person.ROLE_PATIENT


def test_appointment_with_code_reuses_patient(hospital_admin, doctor, patient):
    persons, patients = Person.objects.count(), Patient.objects.count()
    appointment = book(hospital_admin, doctor, patient_code=patient.patient_code.lower(), rehab_duration='8 weeks')
    assert (Person.objects.count(), Patient.objects.count()) == (persons, patients)
    assert appointment.person_id == patient.person_id
    assert appointment.patient_code == patient.patient_code
    # snapshot defaults from the patient, form values win
    assert appointment.knee_condition == patient.knee_condition
    assert appointment.rehab_duration == '8 weeks'


def test_appointment_with_unknown_code_fails(hospital_admin, doctor):
    with pytest.raises(NotFound):
        book(hospital_admin, doctor, patient_code='ZZZ999')
    assert not Appointment.objects.exists()


def test_appointment_needs_own_doctor(super_admin, doctor, patient):
    other = accounts.create_hospital_admin(super_admin, name='South', email='south@example.com',
                                           password=PASSWORD, total_tests=5)
    with pytest.raises(NotFound):
        book(other, doctor, patient_code=patient.patient_code)


def test_record_test_runs_side_effects(hospital_admin, doctor, patient):
    appointment = book(hospital_admin, doctor, patient_code=patient.patient_code)
    remaining = doctor.tests_remaining
    recorded = records.record_test(doctor, appointment_id=appointment.pk, puck_id='PUCK-1', leg_tested='Left', **PEAKS)
    assert recorded.failed_side_effects == []
    assert recorded.test.patient_id == patient.pk
    assert not Appointment.objects.filter(pk=appointment.pk).exists()
    doctor.refresh_from_db()
    assert doctor.tests_remaining == remaining - 1
    assert doctor.tests_done == 1


def test_failed_side_effect_keeps_the_test(monkeypatch, hospital_admin, doctor, patient):
    def boom(_doctor):
        raise RuntimeError('ledger offline')

    monkeypatch.setattr(records, 'record_test_completion', boom)
    appointment = book(hospital_admin, doctor, patient_code=patient.patient_code)
    recorded = records.record_test(doctor, appointment_id=appointment.pk, puck_id='PUCK-1', leg_tested='Right', **PEAKS)
    assert recorded.failed_side_effects == ['record_test_completion']
    assert KneeTest.objects.filter(pk=recorded.test.pk).exists()
    assert not Appointment.objects.filter(pk=appointment.pk).exists()
    doctor.refresh_from_db()
    assert doctor.tests_done == 0


def test_record_test_for_foreign_appointment_is_not_found(hospital_admin, doctor, patient):
    other = accounts.create_doctor(hospital_admin, name='Dr Who', email='who@example.com',
                                   password=PASSWORD, gender='Male')
    appointment = book(hospital_admin, doctor, patient_code=patient.patient_code)
    with pytest.raises(NotFound):
        records.record_test(other, appointment_id=appointment.pk, puck_id='P', leg_tested='Left', **PEAKS)
    assert Appointment.objects.filter(pk=appointment.pk).exists()


def test_record_test_falls_back_to_live_raw_data(hospital_admin, doctor, patient):
    records.store_raw_data(puck_id='PUCK-9', range_of_motion=98.0, linear_displacement=3.1,
                           angular_displacement=7.7, time_series_data=[{'time': 0.0, 'rangeOfMotion': 98.0,
                                                                        'linearDisplacement': 3.1,
                                                                        'angularDisplacement': 7.7}])
    appointment = book(hospital_admin, doctor, patient_code=patient.patient_code)
    test = records.record_test(doctor, appointment_id=appointment.pk, puck_id='PUCK-9', leg_tested='Left').test
    assert (test.max_range_of_motion, test.max_linear_displacement, test.max_angular_displacement) == (98.0, 3.1, 7.7)
    assert len(test.time_series_data) == 1


def test_supplied_peaks_win_over_raw_data(hospital_admin, doctor, patient):
    records.store_raw_data(puck_id='PUCK-9', range_of_motion=1.0, linear_displacement=2.0, angular_displacement=3.0)
    appointment = book(hospital_admin, doctor, patient_code=patient.patient_code)
    test = records.record_test(doctor, appointment_id=appointment.pk, puck_id='PUCK-9', leg_tested='Left',
                               max_range_of_motion=120.0, max_linear_displacement=5.0).test
    test.refresh_from_db()
    assert (test.max_range_of_motion, test.max_linear_displacement, test.max_angular_displacement) == (120.0, 5.0, 3.0)


def test_partial_peaks_without_raw_data_name_the_gaps(hospital_admin, doctor, patient):
    appointment = book(hospital_admin, doctor, patient_code=patient.patient_code)
    with pytest.raises(ValidationError) as exc:
        records.record_test(doctor, appointment_id=appointment.pk, puck_id='NOPE', leg_tested='Left',
                            max_range_of_motion=120.0)
    assert set(exc.value.detail) == {'maxLinearDisplacement', 'maxAngularDisplacement'}
    assert not KneeTest.objects.exists()


def test_expired_raw_data_is_ignored_and_purged(hospital_admin, doctor, patient, settings):
    stale = records.store_raw_data(puck_id='PUCK-9', range_of_motion=1, linear_displacement=1, angular_displacement=1)
    RawData.objects.filter(pk=stale.pk).update(
        created_at=timezone.now() - timedelta(seconds=settings.RAW_DATA_TTL_SECONDS + 1))
    fresh = records.store_raw_data(puck_id='PUCK-2', range_of_motion=1, linear_displacement=1, angular_displacement=1)
    assert records.latest_raw_data('PUCK-9') is None

    appointment = book(hospital_admin, doctor, patient_code=patient.patient_code)
    with pytest.raises(ValidationError):
        records.record_test(doctor, appointment_id=appointment.pk, puck_id='PUCK-9', leg_tested='Left')
    assert Appointment.objects.filter(pk=appointment.pk).exists()

    assert records.purge_expired_raw_data() == 1
    assert list(RawData.objects.values_list('pk', flat=True)) == [fresh.pk]


def test_patient_tests_are_most_recent_first(hospital_admin, doctor, patient):
    now = timezone.now()
    for days in (3, 1, 2):
        appointment = book(hospital_admin, doctor, patient_code=patient.patient_code)
        records.record_test(doctor, appointment_id=appointment.pk, puck_id='P', leg_tested='Left',
                            test_date=now - timedelta(days=days), **PEAKS)
    found, tests = records.patient_tests_for_code(patient.patient_code)
    assert found.pk == patient.pk
    assert [t.test_date for t in tests] == sorted((t.test_date for t in tests), reverse=True)


def test_test_report_requires_owning_code(hospital_admin, doctor, patient):
    other = accounts.create_patient(doctor, name='John Doe', **PATIENT_FIELDS)
    appointment = book(hospital_admin, doctor, patient_code=patient.patient_code)
    test = records.record_test(doctor, appointment_id=appointment.pk, puck_id='P', leg_tested='Left', **PEAKS).test

    assert records.load_test_report(test.pk, patient.patient_code)[1].pk == test.pk
    with pytest.raises(PermissionDenied):
        records.load_test_report(test.pk, other.patient_code)
    with pytest.raises(ValidationError):
        records.load_test_report(test.pk, '')
    with pytest.raises(NotFound):
        records.load_test_report(test.pk + 1000, patient.patient_code)


def test_person_role_cannot_change(doctor):
    person = doctor.person
    person.role = Person.ROLE_SUPER_ADMIN
    with pytest.raises(ValueError):
        person.save()
    person.refresh_from_db()
    assert person.role == Person.ROLE_DOCTOR
