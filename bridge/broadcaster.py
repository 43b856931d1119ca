import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from .rooms import room_participants, user_channel

logger = logging.getLogger(__name__)

# Consumers receive group messages of this type via RealtimeConsumer.bridge_event
EVENT_TYPE = "bridge.event"


class Broadcaster:
    """
    Fire-and-forget fan-out over the Channels layer.

    Two kinds of groups exist: ``user_<id>`` for direct notifications and the
    room id for chat. Membership lives in the channel layer only, so a socket
    that reconnects has to join its groups again.
    """

    def __init__(self, channel_layer=None):
        self.channel_layer = channel_layer or get_channel_layer()

    # --------- membership (called from the consumer) ---------

    async def join_user_channel(self, channel_name, user_id):
        group = user_channel(user_id)
        await self.channel_layer.group_add(group, channel_name)
        return group

    async def join_room(self, channel_name, room_id):
        room_participants(room_id)
        await self.channel_layer.group_add(room_id, channel_name)
        return room_id

    async def leave(self, channel_name, groups):
        for group in list(groups):
            await self.channel_layer.group_discard(group, channel_name)

    # --------- publishing ---------

    async def apublish(self, channel, event, payload):
        """Deliver to whoever is subscribed right now. Never raises."""
        if self.channel_layer is None:
            logger.warning("No channel layer configured, dropped %s on %s", event, channel)
            return False
        try:
            await self.channel_layer.group_send(channel, {
                "type": EVENT_TYPE,
                "event": event,
                "payload": payload,
            })
        except Exception:
            logger.warning("Dropped %s on %s", event, channel, exc_info=True)
            return False
        return True

    def publish(self, channel, event, payload):
        return async_to_sync(self.apublish)(channel, event, payload)

    def notify_user(self, user_id, event, payload):
        return self.publish(user_channel(user_id), event, payload)
