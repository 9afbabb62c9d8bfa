from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Group, GroupMembership


@receiver(post_save, sender=Group)
def _creator_joins_group(sender, instance: Group, created: bool, **kwargs):
    """The creator is always an active admin of a new group."""
    if not created or not instance.created_by_id:
        return
    GroupMembership.objects.get_or_create(
        group=instance,
        user_id=instance.created_by_id,
        defaults={
            "role": GroupMembership.ROLE_ADMIN,
            "status": GroupMembership.STATUS_ACTIVE,
        },
    )
