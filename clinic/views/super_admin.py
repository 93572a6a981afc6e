"""
Super admin endpoints.

A super admin owns the network-wide test pool.  It onboards hospital
centres and moves tests between its own pool and theirs (a negative
count takes tests back).
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from ..auth_views import staff_login
from ..models import HospitalAdmin, Person
from ..permissions import IsSuperAdmin
from ..throttling import LoginRateThrottle
from ..serializers.accounts import HospitalAdminCreateSerializer, StaffCreateSerializer
from ..serializers.ledger import HospitalAllocationSerializer
from ..services import accounts, ledger
from ..services.dashboards import format_hospital_admin, super_admin_dashboard


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def create_super_admin(request):
    s = StaffCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    super_admin = accounts.create_super_admin(**s.validated_data)
    return Response({
        'ok': True,
        'id': super_admin.id,
        'name': super_admin.person.name,
        'email': super_admin.email,
        'testMetrics': super_admin.test_metrics(),
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def super_admin_login(request):
    return staff_login(request, Person.ROLE_SUPER_ADMIN)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def super_admin_dashboard_view(request):
    super_admin = accounts.role_record(request.user, Person.ROLE_SUPER_ADMIN)
    return Response(super_admin_dashboard(super_admin))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def create_hospital_admin(request):
    super_admin = accounts.role_record(request.user, Person.ROLE_SUPER_ADMIN)
    s = HospitalAdminCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    hospital_admin = accounts.create_hospital_admin(super_admin, **s.validated_data)
    return Response({'ok': True, **format_hospital_admin(hospital_admin, with_doctors=False)},
                    status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def allocate_tests(request):
    """Allocate (or, with a negative count, take back) tests for a hospital centre."""
    super_admin = accounts.role_record(request.user, Person.ROLE_SUPER_ADMIN)
    s = HospitalAllocationSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    hospital_admin = accounts.get_owned(HospitalAdmin, pk=s.validated_data['hospital_admin_id'],
                                        created_by=super_admin)
    moved = ledger.allocate_to_hospital_admin(super_admin, hospital_admin, s.validated_data['count'],
                                              actor=request.user)
    return Response({
        'ok': True,
        'superAdmin': moved.grantor.test_metrics(),
        'hospitalAdmin': {'id': hospital_admin.id, 'testMetrics': moved.grantee.test_metrics()},
    })
