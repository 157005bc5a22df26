from __future__ import annotations

import logging
from uuid import UUID

from chat_gateway.application.ports.presence import PresenceView

logger = logging.getLogger(__name__)


class TypingRelay:
    """Best-effort, point-to-point typing signal.

    Remembers only the last delivered state per (sender, receiver) pair to
    drop identical repeats. Nothing is queued for offline receivers.
    """

    def __init__(self, presence: PresenceView) -> None:
        self._presence = presence
        self._last: dict[tuple[UUID, UUID], bool] = {}

    async def relay(
        self,
        sender_id: UUID,
        receiver_id: UUID,
        is_typing: bool,
        *,
        username: str | None = None,
    ) -> bool:
        pair = (sender_id, receiver_id)
        if self._presence.get_handle(receiver_id) is None:
            self._last.pop(pair, None)
            return False
        if self._last.get(pair) == is_typing:
            return False

        delivered = await self._presence.send_to(
            receiver_id,
            "user-typing",
            {"userId": str(sender_id), "username": username, "isTyping": is_typing},
        )
        if delivered:
            self._last[pair] = is_typing
        else:
            self._last.pop(pair, None)
        return delivered

    def forget(self, user_id: UUID) -> None:
        """Drop every pair involving *user_id* (called on disconnect)."""
        for pair in [p for p in self._last if user_id in p]:
            del self._last[pair]
