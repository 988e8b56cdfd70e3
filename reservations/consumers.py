import json
import logging

from channels.generic.websocket import AsyncWebsocketConsumer

from .notifications import dashboard_group
from .permissions import is_reservation_staff

logger = logging.getLogger("channels")


# ==============================================================================
# Base Helper
# ==============================================================================
class SafeConsumer(AsyncWebsocketConsumer):
    """Base consumer with safe JSON sending method."""

    async def safe_send(self, data: dict):
        try:
            await self.send(text_data=json.dumps(data))
        except Exception as exc:
            logger.error(f"{self.__class__.__name__} failed to send data: {exc}")


# ==============================================================================
# Reservation Dashboard Feed
# ==============================================================================
class ReservationFeedConsumer(SafeConsumer):
    """
    Live stream of reservation events for one restaurant's dashboard.

    Only staff of that restaurant (or superusers) may subscribe. Events are
    pushed by ``reservations.notifications.broadcast`` after commit.
    """

    async def connect(self):
        user = self.scope.get("user")
        restaurant_id = self.scope["url_route"]["kwargs"]["restaurant_id"]

        if not self._is_authorized(user, restaurant_id):
            logger.warning(f"❌ Reservation feed refused for restaurant {restaurant_id} (unauthorized user)")
            await self.close(code=4001)
            return

        self.group_name = dashboard_group(restaurant_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        logger.info(f"✅ Reservation feed connected: {user.username} → restaurant {restaurant_id}")

    async def disconnect(self, code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        logger.debug(f"Reservation feed inbound ignored: {text_data}")

    async def reservation_update(self, event):
        """Forward a broadcast reservation event to the client."""
        await self.safe_send(event["data"])

    @staticmethod
    def _is_authorized(user, restaurant_id):
        if not is_reservation_staff(user):
            return False
        return user.works_at(restaurant_id)
