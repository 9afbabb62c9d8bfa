"""
WebSocket consumer for realtime direct and group messaging.

Overview
--------
One ``MessagingConsumer`` instance exists per live socket
(``ws://.../ws/messaging/``) and acts as that connection's session:

- A new connection is unauthenticated and only accepts ``authenticate``.
- ``authenticate`` attaches a user identity, registers the connection in
  the process-wide presence registry and subscribes it to the private
  ``user_<id>`` room.
- ``join_group`` / ``leave_group`` manage ``group_<id>`` room
  subscriptions; joining requires an active group membership.
- ``direct_message`` persists, then pushes to every live connection of the
  recipient and acknowledges the sender.
- ``group_message`` checks membership, persists, then broadcasts to every
  connection joined to the group room (the sender's own included).

Message Formats
---------------
>>> client -> server: {"event": "authenticate", "data": {"userId": "5"}}
<<< server -> client: {"event": "authenticated", "data": {"userId": "5"}}

>>> client -> server: {"event": "direct_message", "data": {"recipientId": "7", "content": "hi"}}
<<< server -> recipient: {"event": "new_message", "data": {"type": "direct", "message": {...}}}
<<< server -> sender:    {"event": "message_sent", "data": {"type": "direct", "message": {...}}}

>>> client -> server: {"event": "join_group", "data": {"groupId": "3"}}
<<< server -> client: {"event": "group_joined", "data": {"groupId": "3"}}

>>> client -> server: {"event": "group_message", "data": {"groupId": "3", "content": "hello"}}
<<< server -> room:   {"event": "new_message", "data": {"type": "group", "message": {...}}}

Failures never close the socket; they come back as
{"event": "error", "data": {"code": "<kind>", "message": "...", "event": "<inbound event>"}}

Implementation Notes
--------------------
- Channels dispatches one event at a time per consumer, so events from a
  single connection are handled in the order received.
- A message is stored before anything is pushed; if storing fails nothing
  is pushed and the sender gets a ``persistence`` error.
- Pushes are best-effort: a full or failing recipient channel is logged and
  skipped, and the sender is still acknowledged.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional, Set

from channels.exceptions import ChannelFull
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.conf import settings
from django.db import DatabaseError

from . import services
from .errors import (
    AuthenticationError,
    AuthorizationError,
    InternalError,
    MessagingError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from .presence import get_presence_registry

log = logging.getLogger(__name__)

# channel-layer group names allow only these characters
IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")


def user_room(user_id: str) -> str:
    return f"user_{user_id}"


def group_room(group_id: str) -> str:
    return f"group_{group_id}"


# -----------------------------
# Payload helpers
# -----------------------------

def _as_dict(data: Any, bare_key: Optional[str] = None) -> Dict[str, Any]:
    """Event data as a dict; a bare scalar is accepted for ``bare_key``."""
    if isinstance(data, dict):
        return data
    if bare_key and data is not None and not isinstance(data, (list, dict)):
        return {bare_key: data}
    raise ValidationError("Field 'data' must be an object.")


def _identifier(data: Dict[str, Any], key: str, *, required: bool = True) -> Optional[str]:
    value = data.get(key)
    if value is None or value == "":
        if required:
            raise ValidationError(f"Field '{key}' is required.")
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValidationError(f"Field '{key}' must be a string or integer.")
    value = str(value).strip()
    if not IDENTIFIER_RE.match(value):
        raise ValidationError(f"Field '{key}' is not a valid identifier.")
    if value.isdigit():
        value = str(int(value))
    return value


def _content(data: Dict[str, Any]) -> str:
    content = data.get("content")
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Field 'content' (non-empty string) is required.")
    return content.strip()


# -----------------------------
# Consumer
# -----------------------------

class MessagingConsumer(AsyncJsonWebsocketConsumer):
    """Connection session for realtime messaging."""

    handlers = {
        "authenticate": "handle_authenticate",
        "join_group": "handle_join_group",
        "leave_group": "handle_leave_group",
        "direct_message": "handle_direct_message",
        "group_message": "handle_group_message",
    }

    user_id: Optional[str] = None

    async def connect(self) -> None:
        self.user_id = None
        self.rooms: Set[str] = set()
        self.presence = get_presence_registry()
        await self.accept()
        log.info("WS connected channel=%s", self.channel_name)

    async def disconnect(self, code: int) -> None:
        await self._leave_all_rooms()
        if self.user_id is not None:
            await self._release_identity()
        log.info("WS disconnected channel=%s code=%s", self.channel_name, code)

    # override to report malformed frames instead of raising
    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        if bytes_data and not text_data:
            await self.send_error(ValidationError("Binary frames are not supported."))
            return
        if not text_data:
            return  # ignore empty frame
        try:
            content = json.loads(text_data)
        except ValueError:
            await self.send_error(ValidationError("Invalid JSON."))
            return
        await self.receive_json(content, **kwargs)

    async def receive_json(self, content: Any, **kwargs: Any) -> None:
        event = content.get("event") if isinstance(content, dict) else None
        if not isinstance(event, str):
            event = None
        try:
            if event is None:
                raise ValidationError("Field 'event' (string) is required.")
            handler_name = self.handlers.get(event)
            if handler_name is None:
                raise ValidationError(f"Unknown event '{event}'.")
            await getattr(self, handler_name)(content.get("data"))
        except MessagingError as exc:
            log.warning("WS %s rejected user=%s: [%s] %s", event, self.user_id, exc.code, exc.detail)
            await self.send_error(exc, event=event)
        except DatabaseError:
            log.exception("WS %s failed user=%s: store error", event, self.user_id)
            await self.send_error(PersistenceError("Storage is unavailable."), event=event)
        except Exception:
            # the session stays open on unexpected failures
            log.exception("WS %s failed user=%s", event, self.user_id)
            await self.send_error(InternalError(), event=event)

    # ---------- outbound ----------
    async def send_event(self, event: str, data: Dict[str, Any]) -> None:
        await self.send_json({"event": event, "data": data})

    async def send_error(self, error: MessagingError, event: Optional[str] = None) -> None:
        await self.send_event("error", error.as_payload(event))

    async def message_new(self, event: Dict[str, Any]) -> None:
        """
        Handler for channel-layer events of type 'message.new', both direct
        sends and group broadcasts.
        """
        await self.send_event("new_message", event["payload"])

    # ---------- inbound events ----------
    async def handle_authenticate(self, data: Any) -> None:
        user_id = _identifier(_as_dict(data, "userId"), "userId")

        token_user = self.scope.get("user")
        token_user_id = None
        if token_user is not None and token_user.is_authenticated:
            token_user_id = str(token_user.pk)
        if token_user_id is not None and token_user_id != user_id:
            raise AuthenticationError("Access token does not belong to this user.")
        if token_user_id is None and settings.MESSAGING_REQUIRE_TOKEN:
            raise AuthenticationError("A valid access token is required.")

        if user_id == self.user_id:
            await self.send_event("authenticated", {"userId": user_id})
            return

        try:
            user = await services.find_user(user_id)
        except DatabaseError as exc:
            log.exception("User lookup failed for %s", user_id)
            raise AuthenticationError("User lookup failed.") from exc
        if user is None:
            raise AuthenticationError("User not found.")

        if self.user_id is not None:
            # switching identity: rooms were authorized for the previous user
            await self._leave_all_rooms()
            await self._release_identity()

        self.user_id = user_id
        self.presence.register(user_id, self.channel_name)
        await self.channel_layer.group_add(user_room(user_id), self.channel_name)
        log.info("User %s authenticated on %s", user_id, self.channel_name)
        await self.send_event("authenticated", {"userId": user_id})

    async def handle_join_group(self, data: Any) -> None:
        data = _as_dict(data, "groupId")
        user_id = self._require_user(data, "userId")
        group_id = _identifier(data, "groupId")
        await self._authorize_group(user_id, group_id)

        room = group_room(group_id)
        if room not in self.rooms:
            await self.channel_layer.group_add(room, self.channel_name)
            self.rooms.add(room)
            log.info("User %s joined %s", user_id, room)
        await self.send_event("group_joined", {"groupId": group_id})

    async def handle_leave_group(self, data: Any) -> None:
        data = _as_dict(data, "groupId")
        user_id = self._require_user(data)
        group_id = _identifier(data, "groupId")

        room = group_room(group_id)
        if room in self.rooms:
            self.rooms.discard(room)
            await self.channel_layer.group_discard(room, self.channel_name)
            log.info("User %s left %s", user_id, room)
        await self.send_event("group_left", {"groupId": group_id})

    async def handle_direct_message(self, data: Any) -> None:
        data = _as_dict(data)
        sender_id = self._require_user(data, "senderId")
        recipient_id = _identifier(data, "recipientId")
        content = _content(data)

        message = await services.save_direct_message(sender_id, recipient_id, content)
        payload = {"type": "direct", "message": message}

        delivered = await self._push_to_user(recipient_id, payload)
        await self.send_event("message_sent", payload)
        log.info(
            "Direct message %s from %s to %s pushed to %d connection(s)",
            message["id"], sender_id, recipient_id, delivered,
        )

    async def handle_group_message(self, data: Any) -> None:
        data = _as_dict(data)
        sender_id = self._require_user(data, "senderId")
        group_id = _identifier(data, "groupId")
        content = _content(data)
        await self._authorize_group(sender_id, group_id)

        message = await services.save_group_message(sender_id, group_id, content)
        room = group_room(group_id)
        try:
            await self.channel_layer.group_send(
                room,
                {"type": "message.new", "payload": {"type": "group", "message": message}},
            )
        except Exception:
            # stored already; broadcast is best-effort
            log.exception("Broadcast of group message %s to %s failed", message["id"], room)
            return
        log.info("Group message %s from %s broadcast to %s", message["id"], sender_id, room)

    # ---------- helpers ----------
    def _require_user(self, data: Dict[str, Any], claimed_key: Optional[str] = None) -> str:
        if self.user_id is None:
            raise AuthenticationError("Authenticate before sending this event.")
        if claimed_key:
            claimed = _identifier(data, claimed_key, required=False)
            if claimed is not None and claimed != self.user_id:
                raise AuthorizationError(f"Field '{claimed_key}' does not match the authenticated user.")
        return self.user_id

    async def _authorize_group(self, user_id: str, group_id: str) -> None:
        member_ids = await services.get_group_member_ids(group_id)
        if member_ids is None:
            raise NotFoundError("Group not found.")
        if user_id not in member_ids:
            raise AuthorizationError("User not in group.")

    async def _push_to_user(self, user_id: str, payload: Dict[str, Any]) -> int:
        delivered = 0
        for channel_name in self.presence.connections(user_id):
            try:
                await self.channel_layer.send(channel_name, {"type": "message.new", "payload": payload})
            except ChannelFull:
                log.warning("Dropped push to %s for user %s: channel full", channel_name, user_id)
                continue
            except Exception:
                log.exception("Push to %s for user %s failed", channel_name, user_id)
                continue
            delivered += 1
        return delivered

    async def _discard(self, room: str) -> None:
        try:
            await self.channel_layer.group_discard(room, self.channel_name)
        except Exception:
            log.exception("Could not discard %s from %s", self.channel_name, room)

    async def _leave_all_rooms(self) -> None:
        rooms = getattr(self, "rooms", set())
        for room in list(rooms):
            await self._discard(room)
        rooms.clear()

    async def _release_identity(self) -> None:
        user_id, self.user_id = self.user_id, None
        self.presence.unregister(user_id, self.channel_name)
        await self._discard(user_room(user_id))
        log.info("User %s released %s", user_id, self.channel_name)
