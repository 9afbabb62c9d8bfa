# groups/permissions.py
"""
Membership reads used to authorize live group traffic.

A user is a current member of a group only while an ``active``
membership row exists; pending and banned rows grant nothing.
"""
from .models import GroupMembership


def active_member_ids(group) -> set[str]:
    """Identities (as strings) of every active member of ``group``."""
    ids = GroupMembership.objects.filter(
        group=group,
        status=GroupMembership.STATUS_ACTIVE,
    ).values_list("user_id", flat=True)
    return {str(uid) for uid in ids}
