# messaging/admin.py
from django.contrib import admin
from .models import Message


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ("id", "message_type", "sender", "recipient", "group", "is_read", "created_at")
    list_filter = ("message_type", "is_read", "created_at")
    search_fields = ("sender__username", "recipient__username", "group__name", "content")
    ordering = ("-created_at",)
