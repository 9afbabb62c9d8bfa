"""
In-process presence registry.

Maps a user identity to the channel names of every live socket that user
has authenticated on, so one identity can be online from several devices
at once.  The registry is created once by ``MessagingConfig.ready()`` and
lives as long as the server process; it is never persisted, so a restart
always begins with nobody online.

Registration and removal are lock-guarded and commutative per user.
Readers only ever get immutable snapshots.
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, FrozenSet, Set

from django.apps import apps

log = logging.getLogger(__name__)


class PresenceRegistry:
    """User identity -> set of live channel names."""

    def __init__(self) -> None:
        self._connections: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    def register(self, user_id: str, channel_name: str) -> bool:
        """Add a connection for ``user_id``; False if it was already there."""
        with self._lock:
            channels = self._connections.setdefault(user_id, set())
            if channel_name in channels:
                return False
            channels.add(channel_name)
            count = len(channels)
        log.debug("presence: %s online on %d connection(s)", user_id, count)
        return True

    def unregister(self, user_id: str, channel_name: str) -> bool:
        """Remove one connection; the user entry goes with its last connection."""
        with self._lock:
            channels = self._connections.get(user_id)
            if not channels or channel_name not in channels:
                return False
            channels.discard(channel_name)
            if not channels:
                del self._connections[user_id]
        return True

    def connections(self, user_id: str) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._connections.get(user_id, ()))

    def is_online(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._connections

    def clear(self) -> None:
        with self._lock:
            self._connections.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)


def get_presence_registry() -> PresenceRegistry:
    """The process-wide registry owned by the messaging app."""
    return apps.get_app_config("messaging").presence
