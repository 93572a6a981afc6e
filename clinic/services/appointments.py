from typing import Optional

from django.db import transaction
from rest_framework.exceptions import NotFound

from clinic.models import Appointment, Doctor, HospitalAdmin, Patient
from clinic.services.accounts import create_patient, get_owned
from clinic.services.audit import log_action

SNAPSHOT_FIELDS = (
    'age', 'sex', 'phone_number', 'address', 'knee_condition',
    'other_morbidities', 'rehab_duration', 'mri_image',
)


def find_patient_by_code(code: str) -> Patient:
    patient = Patient.objects.select_related('person', 'doctor').filter(patient_code=(code or '').strip().upper()).first()
    if patient is None:
        raise NotFound('Patient not found')
    return patient


def create_appointment(hospital_admin: HospitalAdmin, *, doctor_id, appointment_date, name: str = '',
                       patient_code: Optional[str] = None, **snapshot) -> Appointment:
    """Book an appointment with one of the hospital admin's doctors.

    A known ``patient_code`` reuses that patient's identity; without a
    code a new person and patient (with a fresh code) are created under
    the chosen doctor.
    """
    doctor = get_owned(Doctor, pk=doctor_id, hospital_admin=hospital_admin)
    fields = {k: v for k, v in snapshot.items() if k in SNAPSHOT_FIELDS}
    with transaction.atomic():
        if patient_code:
            patient = find_patient_by_code(patient_code)
            # form fields override the stored demographics
            fields = {**{f: getattr(patient, f) for f in SNAPSHOT_FIELDS}, **fields}
        else:
            patient = create_patient(doctor, name=name, **fields)
        appointment = Appointment.objects.create(
            person=patient.person,
            doctor=doctor,
            patient_code=patient.patient_code,
            appointment_date=appointment_date,
            **fields,
        )
    log_action(person=hospital_admin.person, action='create_appointment', object_type='Appointment',
               object_id=appointment.pk, detail={'patientCode': patient.patient_code, 'doctorId': doctor.pk,
                                                 'newPatient': not patient_code})
    return appointment
