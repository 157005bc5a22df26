from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from chat_gateway.domain.entities.message import Attachment, Message
from chat_gateway.domain.entities.user import User


@dataclass(frozen=True, slots=True)
class SendMessageDTO:
    receiver_id: UUID
    text: str | None = None
    attachment: Attachment | None = None


@dataclass(frozen=True, slots=True)
class ConversationSummary:
    """Latest message exchanged with one counterpart."""

    user: User
    last_message: Message
