from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID


class ConnectionHandle(Protocol):
    """One live client connection, as seen by the fanout paths."""

    @property
    def user_id(self) -> UUID: ...

    async def send(self, event_type: str, data: dict[str, Any]) -> None: ...

    async def close(self, code: int, reason: str) -> None: ...


class PresenceView(Protocol):
    """Read side of the presence registry used for delivery targeting."""

    def get_handle(self, user_id: UUID) -> ConnectionHandle | None: ...

    def list_online(self) -> set[UUID]: ...

    async def send_to(
        self, user_id: UUID, event_type: str, data: dict[str, Any]
    ) -> bool: ...

    async def deliver(
        self, handle: ConnectionHandle, event_type: str, data: dict[str, Any]
    ) -> bool: ...
