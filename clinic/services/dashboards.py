from typing import List

from django.db.models import Prefetch, Q

from clinic.models import Appointment, Doctor, HospitalAdmin, KneeTest, Patient, SuperAdmin


def format_doctor(doctor: Doctor) -> dict:
    return {
        'id': doctor.id,
        'name': doctor.person.name,
        'email': doctor.email,
        'gender': doctor.gender,
        'testMetrics': doctor.test_metrics(),
        'patientCount': len(doctor.patients.all()),
    }


def format_hospital_admin(hospital_admin: HospitalAdmin, *, with_doctors: bool = True) -> dict:
    data = {
        'id': hospital_admin.id,
        'name': hospital_admin.person.name,
        'email': hospital_admin.email,
        'testMetrics': hospital_admin.test_metrics(),
    }
    if with_doctors:
        data['doctors'] = [format_doctor(d) for d in hospital_admin.doctors.all()]
    return data


def format_test_summary(test: KneeTest) -> dict:
    return {
        'id': test.id,
        'testDate': test.test_date.isoformat(),
        'legTested': test.leg_tested,
        'legLength': test.leg_length,
        'maxRangeOfMotion': test.max_range_of_motion,
        'maxLinearDisplacement': test.max_linear_displacement,
        'maxAngularDisplacement': test.max_angular_displacement,
        'doctorNotes': test.doctor_notes,
        'doctorName': test.doctor.person.name if test.doctor_id else 'Unknown Doctor',
        'puckId': test.puck_id,
    }


def format_test_report(test: KneeTest, patient: Patient) -> dict:
    return {
        **format_test_summary(test),
        'timeSeriesData': test.time_series_data,
        'filesProcessed': test.files_processed,
        'patient': {
            'name': patient.person.name,
            'age': patient.age,
            'sex': patient.sex,
            'kneeCondition': patient.knee_condition,
        },
    }


def format_patient(patient: Patient, *, with_tests: bool = False) -> dict:
    data = {
        'id': patient.id,
        'userId': {'id': patient.person_id, 'name': patient.person.name},
        'name': patient.person.name,
        'age': patient.age,
        'sex': patient.sex,
        'phoneNumber': patient.phone_number,
        'address': patient.address,
        'kneeCondition': patient.knee_condition,
        'otherMorbidities': patient.other_morbidities,
        'rehabDuration': patient.rehab_duration,
        'mriImage': patient.mri_image,
        'patientCode': patient.patient_code,
        'doctorId': patient.doctor_id,
    }
    if with_tests:
        data['tests'] = [format_test_summary(t) for t in patient.tests.all()]
    else:
        data['tests'] = [t.id for t in patient.tests.all()]
    return data


def format_appointment(appointment: Appointment) -> dict:
    return {
        'id': appointment.id,
        'userId': {'id': appointment.person_id, 'name': appointment.person.name},
        'doctorId': appointment.doctor_id,
        'age': appointment.age,
        'sex': appointment.sex,
        'phoneNumber': appointment.phone_number,
        'address': appointment.address,
        'kneeCondition': appointment.knee_condition,
        'otherMorbidities': appointment.other_morbidities,
        'rehabDuration': appointment.rehab_duration,
        'mriImage': appointment.mri_image,
        'patientCode': appointment.patient_code,
        'appointmentDate': appointment.appointment_date.isoformat(),
    }


def super_admin_dashboard(super_admin: SuperAdmin) -> dict:
    centres = (
        HospitalAdmin.objects.filter(created_by=super_admin)
        .select_related('person')
        .prefetch_related(Prefetch('doctors', queryset=Doctor.objects.select_related('person').prefetch_related('patients')))
        .order_by('id')
    )
    return {
        'id': super_admin.id,
        'name': super_admin.person.name or 'Super Admin',
        'email': super_admin.email,
        'testMetrics': super_admin.test_metrics(),
        'hospitalCentres': [format_hospital_admin(h) for h in centres],
    }


def hospital_admin_dashboard(hospital_admin: HospitalAdmin) -> dict:
    doctors = Doctor.objects.filter(hospital_admin=hospital_admin).select_related('person').prefetch_related('patients').order_by('id')
    return {
        'id': hospital_admin.id,
        'name': hospital_admin.person.name or 'Hospital Admin',
        'testMetrics': hospital_admin.test_metrics(),
        'doctors': [format_doctor(d) for d in doctors],
    }


def doctor_dashboard(doctor: Doctor) -> dict:
    """Patients the doctor owns or treats through appointments and tests.

    Patients booked by code keep their owning doctor, so their tests are
    limited to the ones this doctor recorded.
    """
    tests = (KneeTest.objects.filter(Q(doctor=doctor) | Q(patient__doctor=doctor))
             .select_related('doctor__person').order_by('-test_date', '-id'))
    treated = Q(doctor=doctor) | Q(person__appointments__doctor=doctor) | Q(tests__doctor=doctor)
    patients: List[Patient] = list(
        Patient.objects.filter(treated).distinct().select_related('person')
        .prefetch_related(Prefetch('tests', queryset=tests)).order_by('id')
    )
    appointments = Appointment.objects.filter(doctor=doctor).select_related('person').order_by('appointment_date', 'id')
    return {
        'doctorName': doctor.person.name or 'Doctor',
        'testMetrics': doctor.test_metrics(),
        'patients': [format_patient(p, with_tests=True) for p in patients],
        'appointments': [format_appointment(a) for a in appointments],
    }
