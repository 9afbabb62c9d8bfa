"""
Project-level Channels routing configuration.

This module collects the URL routes for all WebSocket connections.  The
ASGI application wraps them with the JWT authentication middleware stack.
"""
from messaging.routing import websocket_urlpatterns as messaging_ws

websocket_urlpatterns = [
    *messaging_ws,
]
