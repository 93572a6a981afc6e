"""
Doctor endpoints: dashboard, patient onboarding and test recording.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from ..auth_views import staff_login
from ..models import Person
from ..permissions import IsDoctor
from ..throttling import LoginRateThrottle
from ..serializers.accounts import PatientCreateSerializer
from ..serializers.records import KneeTestCreateSerializer
from ..services import accounts
from ..services.dashboards import doctor_dashboard, format_patient, format_test_summary
from ..services.records import record_test


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def doctor_login(request):
    return staff_login(request, Person.ROLE_DOCTOR)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctor])
def doctor_dashboard_view(request):
    doctor = accounts.role_record(request.user, Person.ROLE_DOCTOR)
    return Response(doctor_dashboard(doctor))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDoctor])
def create_patient_view(request):
    doctor = accounts.role_record(request.user, Person.ROLE_DOCTOR)
    s = PatientCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient = accounts.create_patient(doctor, **s.validated_data)
    return Response({'ok': True, **format_patient(patient)}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDoctor])
def create_test_view(request):
    """Record a test against one of the doctor's appointments.

    The appointment is removed and one test is charged to the doctor's
    quota once the test is saved; if either follow-up fails the test
    still stands and the failure is listed in ``failedSideEffects``.
    """
    doctor = accounts.role_record(request.user, Person.ROLE_DOCTOR)
    s = KneeTestCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    recorded = record_test(doctor, **s.validated_data)
    doctor.refresh_from_db()
    return Response({
        'ok': True,
        'test': {**format_test_summary(recorded.test), 'patientCode': recorded.test.patient.patient_code},
        'testMetrics': doctor.test_metrics(),
        'failedSideEffects': recorded.failed_side_effects,
    }, status=status.HTTP_201_CREATED)
