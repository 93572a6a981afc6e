"""
Onboarding of the four tiers and staff login.

Each ``create_*`` call makes one :class:`Person` plus its role record and
links it under the parent tier inside one transaction.
"""
from __future__ import annotations

from typing import Optional, Type

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework.exceptions import AuthenticationFailed, NotFound

from clinic.exceptions import Conflict
from clinic.models import Doctor, HospitalAdmin, Patient, SuperAdmin
from clinic.services.audit import log_action
from clinic.services.codes import generate_unique_patient_code
from clinic.services.ledger import ensure_can_seed

Person = get_user_model()

STAFF_MODELS = {
    Person.ROLE_SUPER_ADMIN: SuperAdmin,
    Person.ROLE_HOSPITAL_ADMIN: HospitalAdmin,
    Person.ROLE_DOCTOR: Doctor,
}


def _normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def _ensure_email_free(model: Type, email: str) -> None:
    if model.objects.filter(email=email).exists() or Person.objects.filter(username=email).exists():
        raise Conflict('Email already registered')


def _create_person(*, name: str, role: str, username: str, password: Optional[str] = None) -> Person:
    person = Person(username=username, name=name, role=role)
    if password:
        person.set_password(password)
    else:
        person.set_unusable_password()
    person.save()
    return person


def create_super_admin(*, name: str, email: str, password: str) -> SuperAdmin:
    email = _normalize_email(email)
    _ensure_email_free(SuperAdmin, email)
    seed = settings.SUPER_ADMIN_SEED_TESTS
    with transaction.atomic():
        person = _create_person(name=name, role=Person.ROLE_SUPER_ADMIN, username=email, password=password)
        super_admin = SuperAdmin.objects.create(
            person=person, email=email,
            total_tests=seed, tests_allocated=0, tests_done=0, tests_remaining=seed,
        )
    log_action(person=person, action='create_super_admin', object_type='SuperAdmin', object_id=super_admin.pk)
    return super_admin


def create_hospital_admin(super_admin: SuperAdmin, *, name: str, email: str, password: str, total_tests: int) -> HospitalAdmin:
    email = _normalize_email(email)
    _ensure_email_free(HospitalAdmin, email)
    ensure_can_seed(super_admin, total_tests)
    with transaction.atomic():
        person = _create_person(name=name, role=Person.ROLE_HOSPITAL_ADMIN, username=email, password=password)
        hospital_admin = HospitalAdmin.objects.create(
            person=person, email=email, created_by=super_admin,
            total_tests=total_tests, tests_allocated=0, tests_done=0, tests_remaining=total_tests,
        )
    log_action(person=super_admin.person, action='create_hospital_admin', object_type='HospitalAdmin',
               object_id=hospital_admin.pk, detail={'totalTests': total_tests})
    return hospital_admin


def create_doctor(hospital_admin: HospitalAdmin, *, name: str, email: str, password: str, gender: str) -> Doctor:
    email = _normalize_email(email)
    _ensure_email_free(Doctor, email)
    with transaction.atomic():
        person = _create_person(name=name, role=Person.ROLE_DOCTOR, username=email, password=password)
        doctor = Doctor.objects.create(person=person, email=email, gender=gender, hospital_admin=hospital_admin)
    log_action(person=hospital_admin.person, action='create_doctor', object_type='Doctor', object_id=doctor.pk)
    return doctor


def create_patient(doctor: Doctor, *, name: str, patient_code: Optional[str] = None, **fields) -> Patient:
    """Create a patient under ``doctor`` with a fresh (or given) unique code.

    Patients never log in with a password; the code is their portal key
    and also serves as the person's username.
    """
    code = patient_code or generate_unique_patient_code()
    with transaction.atomic():
        person = _create_person(name=name, role=Person.ROLE_PATIENT, username=f"patient-{code}")
        patient = Patient.objects.create(person=person, doctor=doctor, patient_code=code, **fields)
    log_action(person=doctor.person, action='create_patient', object_type='Patient', object_id=patient.pk,
               detail={'patientCode': code})
    return patient


def login(role: str, *, email: str, password: str):
    """Return the role record for valid staff credentials.

    Unknown email, wrong password and wrong tier all fail the same way.
    """
    model = STAFF_MODELS[role]
    email = _normalize_email(email)
    record = model.objects.select_related('person').filter(email=email).first()
    if not record or not record.person.is_active or not record.person.check_password(password):
        log_action(person=None, action='login', object_type=model.__name__,
                   detail={'result': 'fail', 'email': email})
        raise AuthenticationFailed('Invalid credentials')
    log_action(person=record.person, action='login', object_type=model.__name__, object_id=record.pk,
               detail={'result': 'ok'})
    return record


def role_record(person, role: str):
    """Return the role record of an authenticated person or raise 401."""
    model = STAFF_MODELS[role]
    record = model.objects.select_related('person').filter(person=person).first()
    if record is None:
        raise AuthenticationFailed('Authentication required')
    return record


def get_owned(model: Type, *, pk, **scope):
    """Fetch ``model`` by ``pk`` restricted to ``scope`` or raise NotFound."""
    obj = model.objects.filter(pk=pk, **scope).first()
    if obj is None:
        raise NotFound(f'{model.__name__} not found')
    return obj
