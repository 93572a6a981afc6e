"""
Recording knee tests and reading them back.

Saving a test is the primary operation.  Deleting the originating
appointment and consuming one unit of the doctor's quota are follow-up
side effects: each runs on its own after the test is committed, and a
failing one is logged and reported without undoing the saved test.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from django.db import transaction
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from clinic.models import Appointment, Doctor, KneeTest, Patient, RawData
from clinic.services.accounts import get_owned
from clinic.services.appointments import find_patient_by_code
from clinic.services.audit import log_action
from clinic.services.ledger import record_test_completion

logger = logging.getLogger(__name__)

PEAK_FIELDS = ('max_range_of_motion', 'max_linear_displacement', 'max_angular_displacement')
# peak field -> (RawData column, request parameter)
PEAK_SOURCES = {
    'max_range_of_motion': ('range_of_motion', 'maxRangeOfMotion'),
    'max_linear_displacement': ('linear_displacement', 'maxLinearDisplacement'),
    'max_angular_displacement': ('angular_displacement', 'maxAngularDisplacement'),
}


@dataclass
class SideEffect:
    name: str
    run: Callable[[], object]


@dataclass
class RecordedTest:
    test: KneeTest
    failed_side_effects: List[str] = field(default_factory=list)


def run_side_effects(effects: List[SideEffect]) -> List[str]:
    """Run each effect independently; return the names of those that failed."""
    failed = []
    for effect in effects:
        try:
            with transaction.atomic():
                effect.run()
        except Exception:
            logger.exception("side effect %s failed", effect.name)
            failed.append(effect.name)
    return failed


def latest_raw_data(puck_id: str) -> Optional[RawData]:
    return RawData.objects.live().filter(puck_id=puck_id).order_by('-created_at', '-id').first()


def _measurements(puck_id: str, data: dict) -> dict:
    """Peak values and series for a new test.

    Values in the request win field by field; any peak left out is taken
    from the puck's latest live raw data.
    """
    supplied = {f: data[f] for f in PEAK_FIELDS if data.get(f) is not None}
    series = data.get('time_series_data')
    if len(supplied) == len(PEAK_FIELDS):
        return {**supplied, 'time_series_data': series or []}
    raw = latest_raw_data(puck_id)
    if raw is None:
        raise ValidationError({
            PEAK_SOURCES[f][1]: 'not supplied and no live raw data for this puck'
            for f in PEAK_FIELDS if f not in supplied
        })
    values = {f: supplied.get(f, getattr(raw, PEAK_SOURCES[f][0])) for f in PEAK_FIELDS}
    values['time_series_data'] = series or raw.time_series_data
    return values


def record_test(doctor: Doctor, *, appointment_id, puck_id: str, leg_tested: str,
                leg_length=None, test_date=None, doctor_notes: str = '',
                files_processed=None, **data) -> RecordedTest:
    appointment = get_owned(Appointment, pk=appointment_id, doctor=doctor)
    patient = Patient.objects.filter(person_id=appointment.person_id).first()
    if patient is None:
        raise NotFound('Patient not found for this appointment')

    values = _measurements(puck_id, data)
    with transaction.atomic():
        test = KneeTest(
            patient=patient,
            doctor=doctor,
            puck_id=puck_id,
            leg_tested=leg_tested,
            leg_length=leg_length,
            doctor_notes=doctor_notes or '',
            files_processed=files_processed or [],
            **values,
        )
        if test_date is not None:
            test.test_date = test_date
        test.save()

    failed = run_side_effects([
        SideEffect('delete_appointment', lambda: Appointment.objects.filter(pk=appointment.pk).delete()),
        SideEffect('record_test_completion', lambda: record_test_completion(doctor)),
    ])
    log_action(person=doctor.person, action='record_test', object_type='KneeTest', object_id=test.pk,
               detail={'appointmentId': appointment.pk, 'patientCode': patient.patient_code,
                       'failedSideEffects': failed})
    return RecordedTest(test=test, failed_side_effects=failed)


def store_raw_data(*, puck_id: str, range_of_motion: float, linear_displacement: float,
                   angular_displacement: float, time_series_data=None) -> RawData:
    return RawData.objects.create(
        puck_id=puck_id,
        range_of_motion=range_of_motion,
        linear_displacement=linear_displacement,
        angular_displacement=angular_displacement,
        time_series_data=time_series_data or [],
    )


def purge_expired_raw_data() -> int:
    deleted, _ = RawData.objects.expired().delete()
    return deleted


# ---------------------------------------------------------------------------
# Patient portal (patient code as the credential)
# ---------------------------------------------------------------------------

def patient_tests_for_code(code: str) -> Tuple[Patient, List[KneeTest]]:
    patient = find_patient_by_code(code)
    tests = list(
        patient.tests.select_related('doctor__person').order_by('-test_date', '-id')
    )
    return patient, tests


def load_test_report(test_id, code: str) -> Tuple[Patient, KneeTest]:
    test = KneeTest.objects.select_related('doctor__person', 'patient').filter(pk=test_id).first()
    if test is None:
        raise NotFound('Test not found')
    if not code:
        raise ValidationError({'patientCode': 'Patient code is required'})
    patient = find_patient_by_code(code)
    if test.patient_id != patient.pk:
        raise PermissionDenied('This test does not belong to the specified patient')
    return patient, test
