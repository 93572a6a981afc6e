"""
Database models for the knee-diagnostics clinic network.

The organisation is a four-tier hierarchy: a super admin owns hospital
centres (hospital admins), which own doctors, which own patients.  Every
onboarded individual is a :class:`Person` (the auth user model) wrapped by
exactly one role record.  The three staff tiers carry a test-allocation
ledger (:class:`QuotaHolder`) that is only ever mutated through
``clinic.services.ledger``.
"""
from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


SEX_CHOICES = [
    ('Male', 'Male'),
    ('Female', 'Female'),
    ('Other', 'Other'),
]


class Person(AbstractUser):
    """Base identity shared by every tier.

    ``role`` is fixed at creation; :meth:`save` refuses to persist a
    changed role for an existing row.  Staff log in with the email held
    on their role record, which is also used as ``username``.
    """
    ROLE_PATIENT = 'patient'
    ROLE_DOCTOR = 'doctor'
    ROLE_HOSPITAL_ADMIN = 'hospital_admin'
    ROLE_SUPER_ADMIN = 'super_admin'
    ROLE_CHOICES = [
        (ROLE_PATIENT, 'Patient'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_HOSPITAL_ADMIN, 'Hospital admin'),
        (ROLE_SUPER_ADMIN, 'Super admin'),
    ]
    name = models.CharField(max_length=255)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if self.pk:
            stored = type(self).objects.filter(pk=self.pk).values_list('role', flat=True).first()
            if stored is not None and stored != self.role:
                raise ValueError(f"role of person {self.pk} cannot change ({stored} -> {self.role})")
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name or self.username} ({self.role})"


class QuotaHolder(models.Model):
    """Test-allocation ledger embedded in the staff tiers.

    ``tests_remaining`` is a signed integer: a doctor may run more tests
    than allocated and go below zero.
    """
    total_tests = models.IntegerField(default=0)
    tests_allocated = models.IntegerField(default=0)
    tests_done = models.IntegerField(default=0)
    tests_remaining = models.IntegerField(default=0)

    LEDGER_FIELDS = ('total_tests', 'tests_allocated', 'tests_done', 'tests_remaining')

    class Meta:
        abstract = True

    def test_metrics(self) -> dict:
        return {
            'totalTests': self.total_tests,
            'testsAllocated': self.tests_allocated,
            'testsDone': self.tests_done,
            'testsRemaining': self.tests_remaining,
        }


class SuperAdmin(QuotaHolder):
    """Root of the hierarchy; holds the network-wide test pool."""
    person = models.OneToOneField(Person, on_delete=models.CASCADE, related_name='super_admin')
    email = models.EmailField(unique=True)

    def __str__(self) -> str:
        return f"SuperAdmin({self.email})"


class HospitalAdmin(QuotaHolder):
    """A hospital centre, created by a super admin."""
    person = models.OneToOneField(Person, on_delete=models.CASCADE, related_name='hospital_admin')
    email = models.EmailField(unique=True)
    created_by = models.ForeignKey(SuperAdmin, on_delete=models.PROTECT, related_name='hospital_centres')

    def __str__(self) -> str:
        return f"HospitalAdmin({self.email})"


class Doctor(QuotaHolder):
    person = models.OneToOneField(Person, on_delete=models.CASCADE, related_name='doctor')
    email = models.EmailField(unique=True)
    gender = models.CharField(max_length=10, choices=SEX_CHOICES)
    hospital_admin = models.ForeignKey(HospitalAdmin, on_delete=models.PROTECT, related_name='doctors')

    def __str__(self) -> str:
        return f"Doctor({self.email})"


class Patient(models.Model):
    """Patient record; ``patient_code`` doubles as the portal credential."""
    person = models.OneToOneField(Person, on_delete=models.CASCADE, related_name='patient')
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name='patients')
    age = models.PositiveIntegerField()
    sex = models.CharField(max_length=10, choices=SEX_CHOICES)
    phone_number = models.CharField(max_length=32)
    address = models.CharField(max_length=255, blank=True)
    knee_condition = models.CharField(max_length=255)
    other_morbidities = models.CharField(max_length=255, default='None')
    rehab_duration = models.CharField(max_length=64)
    # opaque placeholder, no upload handling behind it
    mri_image = models.TextField(blank=True)
    patient_code = models.CharField(max_length=6, unique=True)

    def __str__(self) -> str:
        return f"Patient({self.patient_code})"


class Appointment(models.Model):
    """A scheduled visit; deleted once a test has been recorded against it.

    The demographic fields are a snapshot copied from the booking form,
    not a live view of the :class:`Patient` row.
    """
    person = models.ForeignKey(Person, on_delete=models.CASCADE, related_name='appointments')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='appointments')
    age = models.PositiveIntegerField()
    sex = models.CharField(max_length=10, choices=SEX_CHOICES)
    phone_number = models.CharField(max_length=32)
    address = models.CharField(max_length=255, blank=True)
    knee_condition = models.CharField(max_length=255)
    other_morbidities = models.CharField(max_length=255, default='None')
    rehab_duration = models.CharField(max_length=64)
    mri_image = models.TextField(blank=True)
    patient_code = models.CharField(max_length=6, blank=True, db_index=True)
    appointment_date = models.DateTimeField()

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'appointment_date'], name='clinic_appt_doctor_date_idx'),
        ]

    def __str__(self) -> str:
        return f"Appointment({self.patient_code or self.person_id} @ {self.appointment_date:%F %T})"


class KneeTest(models.Model):
    """A completed biomechanical test session; never updated after creation."""
    LEG_CHOICES = [
        ('Left', 'Left'),
        ('Right', 'Right'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='tests')
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name='tests')
    # sensor/device identifier
    puck_id = models.CharField(max_length=64)
    leg_tested = models.CharField(max_length=5, choices=LEG_CHOICES)
    leg_length = models.FloatField(null=True, blank=True)
    test_date = models.DateTimeField(default=timezone.now)
    max_range_of_motion = models.FloatField()
    max_linear_displacement = models.FloatField()
    max_angular_displacement = models.FloatField()
    # [{time, rangeOfMotion, linearDisplacement, angularDisplacement}, ...]
    time_series_data = models.JSONField(default=list, blank=True)
    doctor_notes = models.TextField(blank=True, default='')
    files_processed = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'clinic_test'
        indexes = [
            models.Index(fields=['patient', 'test_date'], name='clinic_test_patient_date_idx'),
        ]

    def __str__(self) -> str:
        return f"KneeTest({self.id}) patient={self.patient_id} leg={self.leg_tested}"


class RawDataQuerySet(models.QuerySet):
    def live(self, now=None):
        """Rows younger than ``RAW_DATA_TTL_SECONDS``."""
        now = now or timezone.now()
        return self.filter(created_at__gt=now - timedelta(seconds=settings.RAW_DATA_TTL_SECONDS))

    def expired(self, now=None):
        now = now or timezone.now()
        return self.filter(created_at__lte=now - timedelta(seconds=settings.RAW_DATA_TTL_SECONDS))


class RawData(models.Model):
    """Transient sensor measurement waiting to be turned into a test."""
    puck_id = models.CharField(max_length=64, db_index=True)
    range_of_motion = models.FloatField()
    linear_displacement = models.FloatField()
    angular_displacement = models.FloatField()
    time_series_data = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = RawDataQuerySet.as_manager()

    def __str__(self) -> str:
        return f"RawData({self.puck_id} @ {self.created_at:%F %T})"


class AuditEvent(models.Model):
    person = models.ForeignKey(Person, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='clinic_audit_action_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='clinic_audit_object_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.person_id}@{self.created_at:%F %T}"
