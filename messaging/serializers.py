from __future__ import annotations
from rest_framework import serializers
from .models import Message


class MessageSerializer(serializers.ModelSerializer):
    """Shape of a persisted message as pushed to sockets."""

    class Meta:
        model = Message
        fields = (
            "id",
            "sender",
            "recipient",
            "group",
            "content",
            "message_type",
            "is_read",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields
