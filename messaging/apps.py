from django.apps import AppConfig


class MessagingConfig(AppConfig):
    """Configuration for the messaging app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "messaging"

    def ready(self) -> None:
        from .presence import PresenceRegistry

        # One registry per server process
        self.presence = PresenceRegistry()
