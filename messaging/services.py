# messaging/services.py
"""
Store collaborators for the realtime messaging consumer.

Each helper wraps one ORM round trip with ``database_sync_to_async`` so the
consumer only suspends at these points.  Persisted messages come back
already serialized, ready to push.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from channels.db import database_sync_to_async
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction

from groups.models import Group
from groups.permissions import active_member_ids

from .errors import NotFoundError, PersistenceError, ValidationError
from .models import Message
from .serializers import MessageSerializer

logger = logging.getLogger(__name__)

User = get_user_model()


def _get_or_none(model, pk):
    try:
        return model.objects.get(pk=pk)
    except (model.DoesNotExist, ValueError, TypeError, DjangoValidationError):
        # non-numeric ids never match an integer primary key
        return None


@database_sync_to_async
def find_user(user_id: str):
    """Active user with this identity, or None."""
    user = _get_or_none(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


@database_sync_to_async
def get_group_member_ids(group_id: str) -> Optional[set[str]]:
    """Active member identities of a group; None when the group is missing."""
    group = _get_or_none(Group, group_id)
    if group is None:
        return None
    return active_member_ids(group)


def _persist(message: Message) -> dict[str, Any]:
    try:
        message.full_clean()
    except DjangoValidationError as exc:
        raise ValidationError("; ".join(exc.messages)) from exc

    try:
        with transaction.atomic():
            message.save()
            # reload so ids come back in their stored types
            message.refresh_from_db()
    except DatabaseError as exc:
        logger.exception("Failed to store %s message from %s", message.message_type, message.sender_id)
        raise PersistenceError() from exc

    return dict(MessageSerializer(message).data)


@database_sync_to_async
def save_direct_message(sender_id: str, recipient_id: str, content: str) -> dict[str, Any]:
    if _get_or_none(User, recipient_id) is None:
        raise NotFoundError("Recipient not found.")
    message = Message(
        sender_id=sender_id,
        recipient_id=recipient_id,
        content=content,
        message_type=Message.TYPE_DIRECT,
    )
    return _persist(message)


@database_sync_to_async
def save_group_message(sender_id: str, group_id: str, content: str) -> dict[str, Any]:
    message = Message(
        sender_id=sender_id,
        group_id=group_id,
        content=content,
        message_type=Message.TYPE_GROUP,
    )
    return _persist(message)
