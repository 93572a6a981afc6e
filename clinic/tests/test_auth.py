import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from clinic.models import AuditEvent

from .conftest import PASSWORD

pytestmark = pytest.mark.django_db


def login(client, name, email, password=PASSWORD):
    return client.post(reverse(name), {'email': email, 'password': password}, format='json')


def test_create_super_admin_is_open_and_seeded():
    client = APIClient()
    r = client.post(reverse('create_super_admin'),
                    {'name': 'Root', 'email': 'Root@Example.com', 'password': PASSWORD}, format='json')
    assert r.status_code == 201
    assert r.data['email'] == 'root@example.com'
    assert r.data['testMetrics'] == {'totalTests': 50, 'testsAllocated': 0, 'testsDone': 0, 'testsRemaining': 50}


def test_login_returns_jwt_and_legacy_token(doctor):
    r = login(APIClient(), 'doctor_login', 'grey@example.com')
    assert r.status_code == 200
    assert r.data['token'] and r.data['jwt_access'] and r.data['jwt_refresh']
    assert r.data['role'] == 'doctor'
    assert r.data['user']['id'] == doctor.id


def test_login_is_tier_scoped(doctor):
    # a doctor's credentials do not open the hospital admin tier
    r = login(APIClient(), 'hospital_admin_login', 'grey@example.com')
    assert r.status_code == 401
    assert r.data['error']['code'] == 'authentication_failed'


def test_wrong_password_is_rejected_and_audited(hospital_admin):
    r = login(APIClient(), 'hospital_admin_login', 'north@example.com', 'nope-nope')
    assert r.status_code == 401
    event = AuditEvent.objects.filter(action='login').latest('created_at')
    assert event.detail == {'result': 'fail', 'email': 'north@example.com'}
    assert event.person is None


def test_bearer_token_opens_dashboard(super_admin):
    access = login(APIClient(), 'super_admin_login', 'root@example.com').data['jwt_access']
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')
    r = client.get(reverse('super_admin_dashboard'))
    assert r.status_code == 200
    assert r.data['email'] == 'root@example.com'


def test_legacy_token_opens_dashboard(hospital_admin):
    token = login(APIClient(), 'hospital_admin_login', 'north@example.com').data['token']
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Token {token}')
    r = client.get(reverse('hospital_admin_dashboard'))
    assert r.status_code == 200
    assert r.data['name'] == 'North Centre'


def test_refresh_then_logout_blacklists(doctor):
    tokens = login(APIClient(), 'doctor_login', 'grey@example.com').data
    client = APIClient()

    r = client.post(reverse('jwt_refresh'), {'refresh': tokens['jwt_refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['jwt_access']

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['jwt_access']}")
    r = client.post(reverse('jwt_logout'), {'refresh': tokens['jwt_refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['blacklisted'] == 1

    r = APIClient().post(reverse('jwt_refresh'), {'refresh': tokens['jwt_refresh']}, format='json')
    assert r.status_code == 401


def test_health_endpoint(db):
    r = APIClient().get(reverse('healthz'))
    assert r.status_code == 200
    assert r.json() == {'ok': True, 'db': True}


def test_metrics_endpoint(db):
    r = APIClient().get('/metrics')
    assert r.status_code == 200
