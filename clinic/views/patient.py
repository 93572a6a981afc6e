"""
Patient portal.

There is no patient login: the patient code printed for the patient is
the key to their own profile and reports.  These endpoints are open,
so they are throttled per client under the ``patient_code`` rate.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from ..services.appointments import find_patient_by_code
from ..services.dashboards import format_patient, format_test_report, format_test_summary
from ..services.records import load_test_report, patient_tests_for_code
from ..throttling import PatientCodeRateThrottle


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([PatientCodeRateThrottle])
def patient_profile(request, code: str):
    patient = find_patient_by_code(code)
    data = format_patient(patient)
    data['doctorName'] = patient.doctor.person.name
    return Response(data)


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([PatientCodeRateThrottle])
def patient_tests(request, code: str):
    """All tests of the patient, most recent first."""
    patient, tests = patient_tests_for_code(code)
    return Response({
        'patientCode': patient.patient_code,
        'name': patient.person.name,
        'tests': [format_test_summary(t) for t in tests],
    })


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([PatientCodeRateThrottle])
def patient_test_report(request, test_id: int):
    """Full report of one test; ``?patientCode=`` must own the test."""
    patient, test = load_test_report(test_id, request.query_params.get('patientCode', ''))
    return Response(format_test_report(test, patient))

