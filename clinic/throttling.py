"""
Throttles for the unauthenticated entry points, keyed by client IP.
"""
from rest_framework.throttling import AnonRateThrottle


class LoginRateThrottle(AnonRateThrottle):
    scope = 'login'


class PatientCodeRateThrottle(AnonRateThrottle):
    """Limits guessing of patient codes on the open portal."""
    scope = 'patient_code'
