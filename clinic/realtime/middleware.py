"""
Websocket authentication from a ``?token=`` query parameter.

Browsers cannot set an ``Authorization`` header on a websocket handshake,
so the same credentials the REST API accepts (a DRF token key or a JWT
access token) are read from the query string instead.
"""
from urllib.parse import parse_qs

from asgiref.sync import sync_to_async
from channels.middleware import BaseMiddleware
from rest_framework.authtoken.models import Token
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken


def user_for_token(key: str):
    token = Token.objects.select_related('user').filter(key=key).first()
    if token is not None:
        return token.user if token.user.is_active else None
    auth = JWTAuthentication()
    try:
        return auth.get_user(auth.get_validated_token(key))
    except (InvalidToken, AuthenticationFailed):
        return None


class QueryTokenAuthMiddleware(BaseMiddleware):
    """Replaces ``scope["user"]`` when a valid ``token`` parameter is present."""

    async def __call__(self, scope, receive, send):
        params = parse_qs(scope.get("query_string", b"").decode())
        key = (params.get("token") or [""])[0]
        if key:
            user = await sync_to_async(user_for_token)(key)
            if user is not None:
                scope = dict(scope, user=user)
        return await super().__call__(scope, receive, send)
