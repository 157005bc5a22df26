"""Wire records shared by the REST responses and the realtime events."""
from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from chat_gateway.domain.entities.message import Message
from chat_gateway.domain.value_objects.enums import AttachmentKind


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class AttachmentRecord(_Record):
    url: str
    name: str | None = None
    kind: AttachmentKind | None = None


class ReactionRecord(_Record):
    user_id: UUID
    emoji: str
    created_at: datetime


class MessageRecord(_Record):
    id: UUID
    sender_id: UUID
    receiver_id: UUID
    text: str | None
    attachment: AttachmentRecord | None
    reactions: list[ReactionRecord]
    is_read: bool
    read_at: datetime | None
    created_at: datetime


class UserRecord(_Record):
    id: UUID
    username: str
    profile_picture: str | None
    is_online: bool
    last_seen: datetime | None


def message_payload(message: Message) -> dict[str, Any]:
    return MessageRecord.model_validate(message).model_dump(mode="json", by_alias=True)


def reactions_payload(message: Message) -> list[dict[str, Any]]:
    return [
        ReactionRecord.model_validate(r).model_dump(mode="json", by_alias=True)
        for r in message.reactions
    ]
