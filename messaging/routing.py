"""
WebSocket routing for the messaging app.

Exposes a single URL for all realtime messaging.  Identity is established
with the ``authenticate`` event after connecting; the JWT middleware only
pre-populates ``scope["user"]`` when the handshake carries a token.
"""
from django.urls import re_path

from .consumers import MessagingConsumer


websocket_urlpatterns = [
    re_path(r"^ws/messaging/$", MessagingConsumer.as_asgi()),
]
