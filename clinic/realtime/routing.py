from channels.auth import AuthMiddlewareStack
from channels.routing import URLRouter
from django.urls import path

from .consumers import LedgerUpdatesConsumer
from .middleware import QueryTokenAuthMiddleware

websocket_urlpatterns = [
    path("ws/ledger/", LedgerUpdatesConsumer.as_asgi()),
]

# session auth first, a token in the query string overrides it
websocket_application = AuthMiddlewareStack(QueryTokenAuthMiddleware(URLRouter(websocket_urlpatterns)))
