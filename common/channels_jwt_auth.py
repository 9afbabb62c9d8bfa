"""
Custom JWT authentication middleware for Django Channels.

This middleware extracts a JWT token either from the WebSocket's
`Authorization: Bearer <token>` header or from a `token` query parameter.
It validates the token using SimpleJWT and populates `scope['user']` with
the corresponding Django user instance.  Connections without a valid
token see `scope['user']` set to an `AnonymousUser`; they can still open
the socket and identify themselves with the `authenticate` event unless
`MESSAGING_REQUIRE_TOKEN` is enabled.

The token lookup runs through `database_sync_to_async`, which already
closes stale database connections around the query.
"""

import logging
import urllib.parse
from typing import Callable, Optional

from channels.auth import AuthMiddlewareStack
from channels.middleware import BaseMiddleware
from channels.db import database_sync_to_async
from django.contrib.auth.models import AnonymousUser
from django.contrib.auth import get_user_model
from rest_framework_simplejwt.tokens import AccessToken
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings


User = get_user_model()
log = logging.getLogger(__name__)


@database_sync_to_async
def get_user_from_token(token: str) -> Optional[User]:
    """Validate an access token and return its user, or None."""
    try:
        payload = AccessToken(token)
    except TokenError as exc:
        log.debug("Rejected handshake token: %s", exc)
        return None

    user_id = payload.get(api_settings.USER_ID_CLAIM)
    if not user_id:
        return None
    try:
        return User.objects.get(pk=user_id, is_active=True)
    except User.DoesNotExist:
        return None


def extract_token(scope) -> Optional[str]:
    """Bearer header first, then the `token` query parameter."""
    headers = dict(scope.get("headers", []))
    auth_header = headers.get(b"authorization", b"").decode()
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip() or None

    qs = scope.get("query_string", b"").decode()
    params = urllib.parse.parse_qs(qs)
    return params.get("token", [None])[0]


class _JWTMiddleware(BaseMiddleware):
    """Low-level middleware to handle JWT tokens in a WebSocket scope."""

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        scope["user"] = AnonymousUser()

        token = extract_token(scope)
        if token:
            user = await get_user_from_token(token)
            if user:
                scope["user"] = user

        return await super().__call__(scope, receive, send)


def JWTAuthMiddlewareStack(inner: Callable):
    """Entry point for the middleware stack used by Channels routing."""
    return _JWTMiddleware(AuthMiddlewareStack(inner))
