import json

import pytest
from asgiref.sync import async_to_sync, sync_to_async
from channels.testing import WebsocketCommunicator
from rest_framework.authtoken.models import Token
from rest_framework_simplejwt.tokens import RefreshToken

from clinic.realtime.routing import websocket_application
from clinic.services import accounts
from clinic.services.events import audience_groups, broadcast_ledger_update

from .conftest import PASSWORD

# consumers reach the database from worker threads
pytestmark = pytest.mark.django_db(transaction=True)


@pytest.fixture(autouse=True)
def fresh_channel_layer(settings):
    settings.CHANNEL_LAYERS = {"default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}}


def token_path(person) -> str:
    token, _ = Token.objects.get_or_create(user=person)
    return f"/ws/ledger/?token={token.key}"


def listen(path, during=None):
    """Connect, optionally run ``during`` and collect the events that arrive."""
    async def run():
        communicator = WebsocketCommunicator(websocket_application, path)
        connected, _ = await communicator.connect()
        if not connected:
            return False, []
        welcome = json.loads(await communicator.receive_from())
        assert welcome["type"] == "welcome"
        if during is not None:
            await sync_to_async(during)()
        events = []
        while not await communicator.receive_nothing(timeout=0.2):
            events.append(json.loads(await communicator.receive_from()))
        await communicator.disconnect()
        return True, events

    return async_to_sync(run)()


def test_anonymous_connection_is_refused():
    connected, _ = listen("/ws/ledger/")
    assert connected is False


def test_unknown_token_is_refused():
    connected, _ = listen("/ws/ledger/?token=not-a-real-token")
    assert connected is False


def test_patient_cannot_listen(patient):
    connected, _ = listen(token_path(patient.person))
    assert connected is False


def test_audience_is_holder_and_managers(super_admin, hospital_admin, doctor):
    assert audience_groups(super_admin) == [f"ledger.superadmin.{super_admin.pk}"]
    assert audience_groups(doctor) == [
        f"ledger.doctor.{doctor.pk}",
        f"ledger.hospitaladmin.{hospital_admin.pk}",
        f"ledger.superadmin.{super_admin.pk}",
    ]


def test_doctor_sees_only_own_counters(hospital_admin, doctor):
    sibling = accounts.create_doctor(hospital_admin, name='Dr Who', email='who@example.com',
                                     password=PASSWORD, gender='Male')

    def transfer():
        broadcast_ledger_update('hospital_to_doctor', hospital_admin, doctor)

    connected, events = listen(token_path(doctor.person), during=transfer)
    assert connected is True
    assert len(events) == 1
    assert events[0]["reason"] == 'hospital_to_doctor'
    assert [(h["tier"], h["id"]) for h in events[0]["holders"]] == [("Doctor", doctor.pk)]

    connected, events = listen(token_path(sibling.person), during=transfer)
    assert connected is True
    assert events == []


def test_super_admin_with_jwt_sees_its_centres(super_admin, hospital_admin, doctor):
    other_root = accounts.create_super_admin(name='Other Root', email='other@example.com', password=PASSWORD)
    access = str(RefreshToken.for_user(super_admin.person).access_token)

    def transfer():
        broadcast_ledger_update('hospital_to_doctor', hospital_admin, doctor)

    connected, events = listen(f"/ws/ledger/?token={access}", during=transfer)
    assert connected is True
    assert [(h["tier"], h["id"]) for h in events[0]["holders"]] == [
        ("HospitalAdmin", hospital_admin.pk), ("Doctor", doctor.pk),
    ]

    connected, events = listen(token_path(other_root.person), during=transfer)
    assert connected is True
    assert events == []
