"""
URL mappings for the clinic API.

Paths are grouped by tier and keep the front-end's conventions: no
trailing slashes, kebab-case actions under ``/api/<tier>/``.
"""
from django.urls import include, path

from .auth_views import jwt_logout_view, jwt_refresh_view
from .views import doctor, health, hospital_admin, patient, raw_data, super_admin

urlpatterns = [
    # serves /metrics
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # JWT session
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout'),
    # Super admin
    path('api/super-admin/create-super-admin', super_admin.create_super_admin, name='create_super_admin'),
    path('api/super-admin/login', super_admin.super_admin_login, name='super_admin_login'),
    path('api/super-admin/dashboard', super_admin.super_admin_dashboard_view, name='super_admin_dashboard'),
    path('api/super-admin/create-hospital-admin', super_admin.create_hospital_admin, name='create_hospital_admin'),
    path('api/super-admin/allocate-tests', super_admin.allocate_tests, name='super_admin_allocate_tests'),
    # Hospital admin
    path('api/hospital-admin/login', hospital_admin.hospital_admin_login, name='hospital_admin_login'),
    path('api/hospital-admin/dashboard', hospital_admin.hospital_admin_dashboard_view,
         name='hospital_admin_dashboard'),
    path('api/hospital-admin/doctors', hospital_admin.create_doctor, name='create_doctor'),
    path('api/hospital-admin/allocate-tests/<int:doctor_id>', hospital_admin.allocate_doctor_tests,
         name='hospital_admin_allocate_tests'),
    path('api/hospital-admin/appointments', hospital_admin.create_appointment_view, name='create_appointment'),
    path('api/hospital-admin/patient/<str:code>', hospital_admin.patient_by_code, name='patient_by_code'),
    # Doctor
    path('api/doctor/login', doctor.doctor_login, name='doctor_login'),
    path('api/doctor/dashboard', doctor.doctor_dashboard_view, name='doctor_dashboard'),
    path('api/doctor/patients', doctor.create_patient_view, name='doctor_create_patient'),
    path('api/doctor/tests', doctor.create_test_view, name='doctor_create_test'),
    # Sensor measurements
    path('api/test/raw-data', raw_data.raw_data_create, name='raw_data_create'),
    path('api/test/raw-data/<str:puck_id>', raw_data.raw_data_detail, name='raw_data_detail'),
    # Patient portal
    path('api/patient/profile/<str:code>', patient.patient_profile, name='patient_profile'),
    path('api/patient/tests/<str:code>', patient.patient_tests, name='patient_tests'),
    path('api/patient/test-report/<int:test_id>', patient.patient_test_report, name='patient_test_report'),
]
