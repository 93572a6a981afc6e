import json

from asgiref.sync import sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from clinic.services.events import group_for_person


class LedgerUpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes ``ledger.updated`` events to a staff member's dashboard.

    Only authenticated staff are accepted; each connection listens on the
    group of its own quota holder.
    """

    async def connect(self):
        user = self.scope.get("user") or AnonymousUser()
        group = await sync_to_async(group_for_person)(user)
        if group is None:
            await self.close(code=4003)
            return

        self.group_name = group
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def ledger_updated(self, event):
        # event: {"type": "ledger.updated", "reason": str, "holders": [...]}
        await self.send(json.dumps(event))
