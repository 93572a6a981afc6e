# clinic/management/commands/seed_demo.py
from django.core.management.base import BaseCommand

from clinic.models import Doctor, HospitalAdmin, SuperAdmin
from clinic.services import accounts, ledger

SUPER_EMAIL = "super@kneelab.local"
HOSPITAL_EMAIL = "centre@kneelab.local"
DOCTOR_EMAIL = "doctor@kneelab.local"


class Command(BaseCommand):
    help = "Ensure a demo super admin / hospital admin / doctor chain exists (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="123456")
        parser.add_argument("--hospital-tests", type=int, default=20)
        parser.add_argument("--doctor-tests", type=int, default=10)

    def handle(self, *args, **opts):
        password = opts["password"]

        super_admin = SuperAdmin.objects.filter(email=SUPER_EMAIL).first()
        if super_admin is None:
            super_admin = accounts.create_super_admin(name="Demo Super Admin", email=SUPER_EMAIL, password=password)
        self.stdout.write(self.style.SUCCESS(f"ok: {SUPER_EMAIL} (super_admin)"))

        hospital_admin = HospitalAdmin.objects.filter(email=HOSPITAL_EMAIL).first()
        if hospital_admin is None:
            hospital_admin = accounts.create_hospital_admin(
                super_admin, name="Demo Knee Centre", email=HOSPITAL_EMAIL, password=password,
                total_tests=opts["hospital_tests"],
            )
        self.stdout.write(self.style.SUCCESS(f"ok: {HOSPITAL_EMAIL} (hospital_admin)"))

        doctor = Doctor.objects.filter(email=DOCTOR_EMAIL).first()
        if doctor is None:
            doctor = accounts.create_doctor(hospital_admin, name="Demo Doctor", email=DOCTOR_EMAIL,
                                            password=password, gender="Female")
        if doctor.tests_allocated == 0 and opts["doctor_tests"] > 0:
            ledger.allocate_to_doctor(hospital_admin, doctor, opts["doctor_tests"])
        self.stdout.write(self.style.SUCCESS(f"ok: {DOCTOR_EMAIL} (doctor, {doctor.tests_remaining} tests remaining)"))
        self.stdout.write(self.style.SUCCESS("Demo hierarchy ensured."))
