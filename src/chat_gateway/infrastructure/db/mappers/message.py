from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from chat_gateway.domain.entities.message import Attachment, Message, Reaction
from chat_gateway.domain.value_objects.enums import AttachmentKind
from chat_gateway.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    attachment = None
    if model.file_url:
        attachment = Attachment(
            url=model.file_url,
            name=model.file_name,
            kind=AttachmentKind(model.file_type) if model.file_type else None,
        )
    return Message(
        id=model.id,
        sender_id=model.sender_id,
        receiver_id=model.receiver_id,
        text=model.text,
        attachment=attachment,
        reactions=reactions_from_json(model.reactions or []),
        is_read=model.is_read,
        read_at=model.read_at,
        created_at=model.created_at,
    )


def reactions_from_json(raw: list[dict[str, Any]]) -> tuple[Reaction, ...]:
    return tuple(
        Reaction(
            user_id=UUID(item["user_id"]),
            emoji=item["emoji"],
            created_at=datetime.fromisoformat(item["created_at"]),
        )
        for item in raw
    )


def reactions_to_json(reactions: tuple[Reaction, ...]) -> list[dict[str, Any]]:
    return [
        {
            "user_id": str(r.user_id),
            "emoji": r.emoji,
            "created_at": r.created_at.isoformat(),
        }
        for r in reactions
    ]
