import json
from channels.generic.websocket import AsyncWebsocketConsumer
from channels.db import database_sync_to_async
from django.core.serializers.json import DjangoJSONEncoder

from .broadcaster import Broadcaster
from .exceptions import BridgeError, InvalidRequest, Unauthorized
from .services import build_services


class RealtimeConsumer(AsyncWebsocketConsumer):
    """
    One socket per client. After connecting the client joins its own user
    channel and any chat rooms it opens; every event published on those
    channels is forwarded as ``{"event": ..., "payload": ...}``.
    """

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            await self.close(code=4401)
            return
        self.user = user
        self.broadcaster = Broadcaster(self.channel_layer)
        self.joined = set()
        await self.accept()

    async def disconnect(self, close_code):
        # membership is not persisted, a reconnecting client joins again
        joined = getattr(self, "joined", None)
        if joined:
            await self.broadcaster.leave(self.channel_name, joined)
            joined.clear()

    async def receive(self, text_data=None, bytes_data=None):
        if not text_data:
            return
        try:
            data = json.loads(text_data)
        except ValueError:
            await self.send_error(InvalidRequest("Frames must be JSON"))
            return
        if not isinstance(data, dict):
            await self.send_error(InvalidRequest("Frames must be JSON objects"))
            return

        action = data.get("action")
        try:
            if action == "join_user":
                await self.join_user(data.get("userId"))
            elif action == "join_room":
                await self.join_room(data.get("roomId"))
            elif action == "leave_room":
                await self.leave_room(data.get("roomId"))
            else:
                raise InvalidRequest(f"Unknown action {action!r}")
        except BridgeError as exc:
            await self.send_error(exc)

    async def join_user(self, user_id):
        if str(user_id) != str(self.user.pk):
            raise Unauthorized("You can only join your own user channel")
        group = await self.broadcaster.join_user_channel(self.channel_name, self.user.pk)
        self.joined.add(group)
        await self.send_json({"action": "joined", "channel": group})

    async def join_room(self, room_id):
        conn = await self.room_connection(room_id)
        if self.user.pk not in (conn.student_id, conn.mentor_id):
            raise Unauthorized("You are not part of this room")
        group = await self.broadcaster.join_room(self.channel_name, room_id)
        self.joined.add(group)
        await self.send_json({"action": "joined", "channel": group})

    async def leave_room(self, room_id):
        if room_id in self.joined:
            await self.broadcaster.leave(self.channel_name, [room_id])
            self.joined.discard(room_id)
        await self.send_json({"action": "left", "channel": room_id})

    # Group event handler (invoked via group_send)
    async def bridge_event(self, event):
        await self.send_json({
            "event": event["event"],
            "payload": event["payload"],
        })

    # DB helpers
    @database_sync_to_async
    def room_connection(self, room_id):
        return build_services(self.broadcaster).engine.connection_for_room(room_id)

    async def send_error(self, exc):
        await self.send_json({"action": "error", "code": exc.code, "detail": exc.message})

    # convenience: send json wrapper
    async def send_json(self, payload):
        await self.send(text_data=json.dumps(payload, cls=DjangoJSONEncoder))
