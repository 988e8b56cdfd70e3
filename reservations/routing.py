"""
reservations/routing.py

WebSocket routes for Django Channels.
"""

from django.urls import re_path
from . import consumers

websocket_urlpatterns = [
    # -------------------------------------------------------------------------
    # Reservation dashboard
    # Example connection: ws://host/ws/reservations/3/
    # -------------------------------------------------------------------------
    re_path(r"^ws/reservations/(?P<restaurant_id>\d+)/$", consumers.ReservationFeedConsumer.as_asgi()),
]
