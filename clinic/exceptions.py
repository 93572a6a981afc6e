"""
API error taxonomy and the unified exception handler.

Validation, not-found and credential errors reuse DRF's own exception
classes; the ledger and code generator add the three below.  Every error
leaves the API as ``{"ok": false, "error": {"code": ..., "message": ...}}``.
"""
import logging

from django.db import IntegrityError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class InsufficientQuota(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Not enough tests available for this allocation.'
    default_code = 'insufficient_quota'


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'conflict'


class CodeSpaceExhausted(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Could not generate a unique patient code.'
    default_code = 'code_space_exhausted'


def _error_code(exc) -> str:
    codes = exc.get_codes() if isinstance(exc, APIException) else None
    if isinstance(codes, str):
        return codes
    return getattr(exc, 'default_code', None) or 'api_error'


def api_exception_handler(exc, context):
    if isinstance(exc, IntegrityError):
        # unique constraint lost a race against a concurrent writer
        exc = Conflict(str(exc))
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception("unhandled API error")
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': 'Internal server error'}}, status=500)
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    return Response(
        {'ok': False, 'error': {'code': _error_code(exc), 'message': detail}},
        status=resp.status_code,
        headers={h: resp[h] for h in ('WWW-Authenticate', 'Retry-After') if resp.has_header(h)},
    )
