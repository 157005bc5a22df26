from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from chat_gateway.domain.entities.message import Attachment, Message, Reaction


class MessageReader(Protocol):
    async def get_by_id(self, message_id: UUID) -> Message | None: ...

    async def list_between(self, user_a: UUID, user_b: UUID) -> list[Message]:
        """Messages exchanged by the pair, oldest first."""
        ...

    async def latest_per_counterpart(self, user_id: UUID) -> list[Message]:
        """Most recent message with each counterpart, newest first."""
        ...


class MessageWriter(Protocol):
    async def create(
        self,
        sender_id: UUID,
        receiver_id: UUID,
        text: str | None,
        attachment: Attachment | None,
    ) -> Message:
        """Insert a message; the store assigns id and created_at."""
        ...

    async def get_for_update(self, message_id: UUID) -> Message | None:
        """Load a message and hold a row lock until commit/rollback."""
        ...

    async def save_reactions(
        self, message_id: UUID, reactions: tuple[Reaction, ...]
    ) -> None: ...

    async def mark_read(
        self, sender_id: UUID, receiver_id: UUID, read_at: datetime
    ) -> int:
        """Flip every unread message sender→receiver in one statement. Return row count."""
        ...

    async def delete(self, message_id: UUID) -> None: ...
