from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from uuid import UUID

from chat_gateway.domain.value_objects.enums import AttachmentKind


@dataclass(frozen=True, slots=True)
class Attachment:
    url: str
    name: str | None = None
    kind: AttachmentKind | None = None


@dataclass(frozen=True, slots=True)
class Reaction:
    user_id: UUID
    emoji: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    sender_id: UUID
    receiver_id: UUID
    text: str | None
    attachment: Attachment | None
    reactions: tuple[Reaction, ...]
    is_read: bool
    read_at: datetime | None
    created_at: datetime

    def involves(self, user_id: UUID) -> bool:
        return user_id in (self.sender_id, self.receiver_id)

    def counterpart_of(self, user_id: UUID) -> UUID:
        return self.receiver_id if user_id == self.sender_id else self.sender_id


def with_reaction(message: Message, user_id: UUID, emoji: str, now: datetime) -> Message:
    """Return a copy of *message* where *user_id* reacted with *emoji*.

    An existing reaction by the same user keeps its position and timestamp;
    only the emoji changes.
    """
    reactions = list(message.reactions)
    for i, reaction in enumerate(reactions):
        if reaction.user_id == user_id:
            reactions[i] = replace(reaction, emoji=emoji)
            break
    else:
        reactions.append(Reaction(user_id=user_id, emoji=emoji, created_at=now))
    return replace(message, reactions=tuple(reactions))


def without_reaction(message: Message, user_id: UUID) -> Message:
    reactions = tuple(r for r in message.reactions if r.user_id != user_id)
    return replace(message, reactions=reactions)
