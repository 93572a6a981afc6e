import random

import pytest

from clinic.exceptions import CodeSpaceExhausted
from clinic.services import accounts
from clinic.services.codes import (
    PATIENT_CODE_RE,
    generate_patient_code,
    generate_unique_patient_code,
    is_valid_patient_code,
)

from .conftest import PATIENT_FIELDS


def test_generated_codes_have_expected_shape():
    rng = random.Random(7)
    for _ in range(500):
        code = generate_patient_code(rng)
        assert PATIENT_CODE_RE.match(code), code
        assert 100 <= int(code[3:]) <= 999


@pytest.mark.parametrize('code,ok', [
    ('ABC123', True),
    ('ZZZ999', True),
    ('ABC099', False),
    ('abc123', False),
    ('AB1234', False),
    ('ABCD12', False),
    ('', False),
])
def test_is_valid_patient_code(code, ok):
    assert is_valid_patient_code(code) is ok


def test_unique_code_skips_taken_codes():
    seen = []

    def taken(code):
        seen.append(code)
        return len(seen) <= 3

    code = generate_unique_patient_code(rng=random.Random(1), exists=taken)
    assert len(seen) == 4
    assert code == seen[-1]


def test_exhausted_code_space_raises():
    calls = []

    def always_taken(code):
        calls.append(code)
        return True

    with pytest.raises(CodeSpaceExhausted):
        generate_unique_patient_code(max_attempts=5, exists=always_taken)
    assert len(calls) == 5


def test_retry_bound_comes_from_settings(settings):
    settings.PATIENT_CODE_MAX_ATTEMPTS = 3
    calls = []
    with pytest.raises(CodeSpaceExhausted):
        generate_unique_patient_code(exists=lambda c: calls.append(c) or True)
    assert len(calls) == 3


@pytest.mark.django_db
def test_codes_are_unique_across_patients(doctor):
    codes = {accounts.create_patient(doctor, name=f'Patient {i}', **PATIENT_FIELDS).patient_code for i in range(40)}
    assert len(codes) == 40
    assert all(PATIENT_CODE_RE.match(c) for c in codes)


@pytest.mark.django_db
def test_existing_patient_code_is_never_reissued(doctor, patient):
    rng = random.Random(3)
    first = generate_patient_code(random.Random(3))
    # make the first draw collide with a stored patient
    type(patient).objects.filter(pk=patient.pk).update(patient_code=first)
    code = generate_unique_patient_code(rng=rng)
    assert code != first
