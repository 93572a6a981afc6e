import pytest
from django.core.cache import cache
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from clinic.services import accounts

PASSWORD = 'P@ssw0rd1'

PATIENT_FIELDS = {
    'age': 54,
    'sex': 'Female',
    'phone_number': '+44 20 7946 0000',
    'address': '1 High Street',
    'knee_condition': 'ACL reconstruction',
    'other_morbidities': 'None',
    'rehab_duration': '6 weeks',
    'mri_image': '',
}


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    # throttle counters live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def super_admin(db):
    return accounts.create_super_admin(name='Root Admin', email='root@example.com', password=PASSWORD)


@pytest.fixture
def hospital_admin(super_admin):
    return accounts.create_hospital_admin(super_admin, name='North Centre', email='north@example.com',
                                          password=PASSWORD, total_tests=20)


@pytest.fixture
def doctor(hospital_admin):
    return accounts.create_doctor(hospital_admin, name='Dr Grey', email='grey@example.com',
                                  password=PASSWORD, gender='Female')


@pytest.fixture
def patient(doctor):
    return accounts.create_patient(doctor, name='Jane Roe', **PATIENT_FIELDS)


def client_for(person) -> APIClient:
    client = APIClient()
    token, _ = Token.objects.get_or_create(user=person)
    client.credentials(HTTP_AUTHORIZATION=f'Token {token.key}')
    return client
