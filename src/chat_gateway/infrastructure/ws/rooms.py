"""Two-party rooms derived from an unordered pair of user ids."""
from __future__ import annotations

import logging
from uuid import UUID

from chat_gateway.application.ports.presence import ConnectionHandle

logger = logging.getLogger(__name__)

ROOM_KEY_SEPARATOR = "-"


def compute_room_key(user_a: UUID | str, user_b: UUID | str) -> str:
    first, second = sorted((str(user_a), str(user_b)))
    return f"{first}{ROOM_KEY_SEPARATOR}{second}"


class RoomRouter:
    """Channel membership keyed by the derived room key.

    Holds no state beyond which connections currently sit in which room.
    """

    def __init__(self) -> None:
        self._members: dict[str, set[ConnectionHandle]] = {}

    def join(self, handle: ConnectionHandle, other_user_id: UUID) -> str:
        key = compute_room_key(handle.user_id, other_user_id)
        self._members.setdefault(key, set()).add(handle)
        logger.debug("%s joined room %s", handle.user_id, key)
        return key

    def leave(self, handle: ConnectionHandle, other_user_id: UUID) -> str:
        key = compute_room_key(handle.user_id, other_user_id)
        self._discard(key, handle)
        logger.debug("%s left room %s", handle.user_id, key)
        return key

    def leave_all(self, handle: ConnectionHandle) -> None:
        for key in [k for k, members in self._members.items() if handle in members]:
            self._discard(key, handle)

    def members(self, key: str) -> set[ConnectionHandle]:
        return set(self._members.get(key, ()))

    def _discard(self, key: str, handle: ConnectionHandle) -> None:
        members = self._members.get(key)
        if members is None:
            return
        members.discard(handle)
        if not members:
            del self._members[key]
