# messaging/models.py
from django.conf import settings
from django.db import models
from django.core.exceptions import ValidationError


class Message(models.Model):
    TYPE_DIRECT = "direct"
    TYPE_GROUP = "group"
    TYPE_CHOICES = [
        (TYPE_DIRECT, "Direct"),
        (TYPE_GROUP, "Group"),
    ]

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="sent_messages"
    )
    # exactly one of recipient / group is set
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE,
        related_name="received_messages", null=True, blank=True
    )
    group = models.ForeignKey(
        "groups.Group", on_delete=models.CASCADE,
        related_name="messages", null=True, blank=True
    )
    content = models.TextField()
    message_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["sender", "recipient", "created_at"], name="msg_direct_thread_idx"),
            models.Index(fields=["group", "created_at"], name="msg_group_thread_idx"),
        ]
        constraints = [
            # Valid shapes only: a direct message to a user, or a group message
            models.CheckConstraint(
                name="message_single_target",
                condition=(
                    models.Q(message_type="direct", recipient__isnull=False, group__isnull=True)
                    |
                    models.Q(message_type="group", recipient__isnull=True, group__isnull=False)
                ),
            ),
        ]

    @property
    def is_direct(self) -> bool:
        return self.message_type == self.TYPE_DIRECT

    # ---------- validation ----------
    def clean(self):
        super().clean()
        self.content = (self.content or "").strip()
        if not self.content:
            raise ValidationError({"content": "Message content cannot be empty."})

        if bool(self.recipient_id) == bool(self.group_id):
            raise ValidationError("Message must have either a recipient or a group, but not both.")

        if self.recipient_id and self.message_type != self.TYPE_DIRECT:
            raise ValidationError({"message_type": "Messages to a user must be of type 'direct'."})
        if self.group_id and self.message_type != self.TYPE_GROUP:
            raise ValidationError({"message_type": "Messages to a group must be of type 'group'."})

    def save(self, *args, **kwargs):
        if self.content:
            self.content = self.content.strip()
        super().save(*args, **kwargs)

    def __str__(self):
        target = f"user {self.recipient_id}" if self.is_direct else f"group {self.group_id}"
        return f"Message({self.sender_id} → {target})"
