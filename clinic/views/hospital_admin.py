"""
Hospital admin endpoints: doctors, their test quota and appointments.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from ..auth_views import staff_login
from ..models import Doctor, Person
from ..permissions import IsHospitalAdmin
from ..throttling import LoginRateThrottle
from ..serializers.accounts import DoctorCreateSerializer
from ..serializers.appointments import AppointmentCreateSerializer
from ..serializers.ledger import DoctorAllocationSerializer
from ..services import accounts, ledger
from ..services.appointments import create_appointment, find_patient_by_code
from ..services.dashboards import format_appointment, format_doctor, format_patient, hospital_admin_dashboard


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def hospital_admin_login(request):
    return staff_login(request, Person.ROLE_HOSPITAL_ADMIN)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHospitalAdmin])
def hospital_admin_dashboard_view(request):
    hospital_admin = accounts.role_record(request.user, Person.ROLE_HOSPITAL_ADMIN)
    return Response(hospital_admin_dashboard(hospital_admin))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsHospitalAdmin])
def create_doctor(request):
    hospital_admin = accounts.role_record(request.user, Person.ROLE_HOSPITAL_ADMIN)
    s = DoctorCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    doctor = accounts.create_doctor(hospital_admin, **s.validated_data)
    return Response({'ok': True, **format_doctor(doctor)}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsHospitalAdmin])
def allocate_doctor_tests(request, doctor_id: int):
    hospital_admin = accounts.role_record(request.user, Person.ROLE_HOSPITAL_ADMIN)
    s = DoctorAllocationSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    doctor = accounts.get_owned(Doctor, pk=doctor_id, hospital_admin=hospital_admin)
    moved = ledger.allocate_to_doctor(hospital_admin, doctor, s.validated_data['count'], actor=request.user)
    return Response({
        'ok': True,
        'hospitalAdmin': moved.grantor.test_metrics(),
        'doctor': {'id': doctor.id, 'testMetrics': moved.grantee.test_metrics()},
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsHospitalAdmin])
def create_appointment_view(request):
    """Book an appointment; ``patientCode`` reuses an existing patient."""
    hospital_admin = accounts.role_record(request.user, Person.ROLE_HOSPITAL_ADMIN)
    s = AppointmentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = create_appointment(hospital_admin, **s.validated_data)
    return Response({'ok': True, **format_appointment(appointment)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHospitalAdmin])
def patient_by_code(request, code: str):
    """Patient details used to prefill the booking form."""
    patient = find_patient_by_code(code)
    data = format_patient(patient)
    data['doctorName'] = patient.doctor.person.name
    return Response(data)
