"""In-process presence registry: user id → live connection."""
from __future__ import annotations

import asyncio
import logging
from typing import Any
from uuid import UUID

from chat_gateway.application.ports.presence import ConnectionHandle

logger = logging.getLogger(__name__)


class PresenceRegistry:
    """Tracks the single live connection of each user.

    Mutations (``set_online``/``remove``) are only performed by the
    connection lifecycle for the connection's own user and never await, so
    readers always see a fully registered or fully removed entry.
    """

    def __init__(self, send_timeout: float | None = None) -> None:
        self._connections: dict[UUID, ConnectionHandle] = {}
        self._send_timeout = send_timeout

    def set_online(self, user_id: UUID, handle: ConnectionHandle) -> ConnectionHandle | None:
        """Register *handle*; return the connection it replaced, if any."""
        previous = self._connections.get(user_id)
        self._connections[user_id] = handle
        logger.debug("Presence set: %s (total=%d)", user_id, len(self._connections))
        return previous if previous is not handle else None

    def get_handle(self, user_id: UUID) -> ConnectionHandle | None:
        return self._connections.get(user_id)

    def remove(self, user_id: UUID, handle: ConnectionHandle) -> bool:
        """Drop the entry only if it still points at *handle*."""
        if self._connections.get(user_id) is not handle:
            return False
        del self._connections[user_id]
        logger.debug("Presence removed: %s (total=%d)", user_id, len(self._connections))
        return True

    def list_online(self) -> set[UUID]:
        return set(self._connections)

    def is_online(self, user_id: UUID) -> bool:
        return user_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    async def send_to(
        self,
        user_id: UUID,
        event_type: str,
        data: dict[str, Any],
    ) -> bool:
        """Deliver to *user_id* if connected. Return whether a send succeeded."""
        handle = self._connections.get(user_id)
        if handle is None:
            return False
        return await self.deliver(handle, event_type, data)

    async def broadcast(self, event_type: str, data: dict[str, Any]) -> int:
        """Send to every connection concurrently. Return the number delivered."""
        handles = list(self._connections.values())
        if not handles:
            return 0
        results = await asyncio.gather(
            *(self.deliver(h, event_type, data) for h in handles)
        )
        return sum(results)

    async def deliver(
        self,
        handle: ConnectionHandle,
        event_type: str,
        data: dict[str, Any],
    ) -> bool:
        """Send one event, isolating and logging any failure of this connection."""
        try:
            if self._send_timeout is None:
                await handle.send(event_type, data)
            else:
                await asyncio.wait_for(handle.send(event_type, data), self._send_timeout)
        except Exception:
            logger.warning(
                "Delivery of %s to %s failed", event_type, handle.user_id, exc_info=True,
            )
            return False
        return True

    async def close_all(self, code: int, reason: str) -> None:
        handles = list(self._connections.values())
        self._connections.clear()
        for handle in handles:
            try:
                await handle.close(code, reason)
            except Exception:
                logger.debug("Closing %s failed", handle.user_id, exc_info=True)
