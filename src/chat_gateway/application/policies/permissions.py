from __future__ import annotations

from uuid import UUID

from chat_gateway.application.exceptions import ForbiddenError, NotFoundError
from chat_gateway.domain.entities.message import Message


def assert_message_access(user_id: UUID, message: Message | None) -> Message:
    """Raise if the message doesn't exist or the user is not one of its two parties."""
    if message is None:
        raise NotFoundError("Message not found")
    if not message.involves(user_id):
        raise ForbiddenError("Not a participant of this conversation")
    return message


def assert_sender(user_id: UUID, message: Message | None) -> Message:
    if message is None:
        raise NotFoundError("Message not found")
    if message.sender_id != user_id:
        raise ForbiddenError("Not authorized to delete this message")
    return message
