"""
Token authentication for the legacy ``Token`` header.

JWT bearer credentials are handled by simplejwt's ``JWTAuthentication``
(configured alongside this class in settings); both resolve to a
:class:`clinic.models.Person`.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """DRF token auth read from ``Authorization: Token <key>``."""

    keyword = 'Token'
