"""
Django admin registrations for the clinic models.

Ledger counters are read-only here: they are only moved through the
allocation endpoints so every change is locked and audited.
"""

from django.contrib import admin

from .models import (
    Appointment,
    AuditEvent,
    Doctor,
    HospitalAdmin,
    KneeTest,
    Patient,
    Person,
    QuotaHolder,
    RawData,
    SuperAdmin,
)


@admin.register(Person)
class PersonAdmin(admin.ModelAdmin):
    list_display = ('username', 'name', 'role', 'is_active', 'created_at')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'name')
    readonly_fields = ('role', 'password', 'last_login', 'created_at', 'updated_at')


class QuotaHolderAdmin(admin.ModelAdmin):
    readonly_fields = QuotaHolder.LEDGER_FIELDS
    search_fields = ('email', 'person__name')


@admin.register(SuperAdmin)
class SuperAdminAdmin(QuotaHolderAdmin):
    list_display = ('email', 'total_tests', 'tests_allocated', 'tests_remaining')


@admin.register(HospitalAdmin)
class HospitalAdminAdmin(QuotaHolderAdmin):
    list_display = ('email', 'created_by', 'total_tests', 'tests_allocated', 'tests_remaining')
    list_filter = ('created_by',)


@admin.register(Doctor)
class DoctorAdmin(QuotaHolderAdmin):
    list_display = ('email', 'hospital_admin', 'tests_allocated', 'tests_done', 'tests_remaining')
    list_filter = ('hospital_admin',)


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('patient_code', 'person', 'doctor', 'age', 'sex', 'knee_condition')
    search_fields = ('patient_code', 'person__name', 'phone_number')
    readonly_fields = ('patient_code',)


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient_code', 'doctor', 'appointment_date')
    list_filter = ('doctor',)
    search_fields = ('patient_code', 'person__name')


@admin.register(KneeTest)
class KneeTestAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'leg_tested', 'test_date', 'max_range_of_motion')
    list_filter = ('leg_tested', 'doctor')
    search_fields = ('patient__patient_code', 'puck_id')


@admin.register(RawData)
class RawDataAdmin(admin.ModelAdmin):
    list_display = ('puck_id', 'range_of_motion', 'linear_displacement', 'angular_displacement', 'created_at')
    search_fields = ('puck_id',)


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'person', 'object_type', 'object_id')
    list_filter = ('action', 'object_type')
    search_fields = ('object_id', 'person__username')
