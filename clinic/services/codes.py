"""
Patient-code generation.

A patient code is three uppercase letters followed by a number in
``[100, 999]`` (e.g. ``ABC123``).  Codes are checked against existing
patients before use; the unique constraint on ``Patient.patient_code``
catches the remaining race between two concurrent generators.
"""
from __future__ import annotations

import logging
import random
import re
import string
from typing import Callable, Optional

from django.conf import settings

from clinic.exceptions import CodeSpaceExhausted
from clinic.models import Patient

logger = logging.getLogger(__name__)

PATIENT_CODE_RE = re.compile(r'^[A-Z]{3}[1-9][0-9]{2}$')

_system_random = random.SystemRandom()


def generate_patient_code(rng: Optional[random.Random] = None) -> str:
    rng = rng or _system_random
    letters = ''.join(rng.choice(string.ascii_uppercase) for _ in range(3))
    return f"{letters}{rng.randint(100, 999)}"


def is_valid_patient_code(code: str) -> bool:
    return bool(code) and bool(PATIENT_CODE_RE.match(code))


def _code_taken(code: str) -> bool:
    return Patient.objects.filter(patient_code=code).exists()


def generate_unique_patient_code(*, max_attempts: Optional[int] = None,
                                 rng: Optional[random.Random] = None,
                                 exists: Callable[[str], bool] = _code_taken) -> str:
    """Draw codes until one is not used by any patient.

    Raises :class:`CodeSpaceExhausted` after ``max_attempts`` collisions
    (``PATIENT_CODE_MAX_ATTEMPTS`` by default).
    """
    if max_attempts is None:
        max_attempts = settings.PATIENT_CODE_MAX_ATTEMPTS
    for attempt in range(1, max_attempts + 1):
        code = generate_patient_code(rng)
        if not exists(code):
            if attempt > 1:
                logger.info("patient code found after %d attempts", attempt)
            return code
    logger.error("patient code space exhausted after %d attempts", max_attempts)
    raise CodeSpaceExhausted()
