"""
Staff login and JWT session endpoints.

Every staff tier logs in with email and password against its own role
record; a successful login returns both the legacy DRF token and a JWT
pair, so clients can use either ``Token <key>`` or ``Bearer <access>``.
Patients never log in: the patient portal is keyed by patient code.
"""
from __future__ import annotations

from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from clinic.serializers.accounts import LoginSerializer
from clinic.services import accounts


def issue_tokens(person) -> dict:
    token_obj, _ = Token.objects.get_or_create(user=person)
    refresh = RefreshToken.for_user(person)
    return {
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
    }


def staff_login(request, role: str) -> Response:
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    record = accounts.login(role, email=s.validated_data['email'], password=s.validated_data['password'])
    person = record.person
    return Response({
        'ok': True,
        **issue_tokens(person),
        'role': person.role,
        'user': {
            'id': record.id,
            'personId': person.id,
            'name': person.name,
            'email': record.email,
            'role': person.role,
        },
    })


# ---------------------------------------------------------------------
# JWT: refresh & logout
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from refresh token."""
    view = TokenRefreshView.as_view()
    resp = view(request._request)
    if isinstance(resp, Response):
        data = dict(resp.data)
        if 'access' in data and 'jwt_access' not in data:
            data['jwt_access'] = data.pop('access')
        return Response(data, status=resp.status_code)
    return resp


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token, or all of the caller's tokens."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
        except TokenError as e:
            raise ValidationError({'refresh': str(e)})
        count = 1
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    # legacy token goes too
    Token.objects.filter(user=request.user).delete()
    return Response({'ok': True, 'blacklisted': count})
