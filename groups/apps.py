from django.apps import AppConfig


class GroupsConfig(AppConfig):
    """Configuration for the groups app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "groups"

    def ready(self) -> None:
        # Import signal handlers
        from . import signals  # noqa: F401
