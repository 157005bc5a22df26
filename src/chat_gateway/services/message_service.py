from __future__ import annotations

import logging
import uuid

from chat_gateway.application.dto.message import ConversationSummary, SendMessageDTO
from chat_gateway.application.dto.records import message_payload, reactions_payload
from chat_gateway.application.exceptions import NotFoundError
from chat_gateway.application.locks import KeyedLock
from chat_gateway.application.policies.permissions import assert_message_access, assert_sender
from chat_gateway.application.policies.validation import normalize_content, normalize_emoji
from chat_gateway.application.ports.clock import Clock
from chat_gateway.application.ports.presence import ConnectionHandle, PresenceView
from chat_gateway.application.uow import UnitOfWork
from chat_gateway.domain.entities.message import Message, with_reaction, without_reaction

logger = logging.getLogger(__name__)


async def send_message(
    sender_id: uuid.UUID,
    dto: SendMessageDTO,
    uow: UnitOfWork,
    presence: PresenceView,
    *,
    origin: ConnectionHandle | None = None,
) -> Message:
    """Persist a message, then push it to the receiver if connected.

    ``origin`` is the sender's live connection when the send came over the
    socket; it receives the ``message-sent`` acknowledgement. REST sends pass
    None and get no live ack.
    """
    text, attachment = normalize_content(dto.text, dto.attachment)

    receiver = await uow.users.get_by_id(dto.receiver_id)
    if receiver is None:
        raise NotFoundError("Receiver not found")

    msg = await uow.messages_w.create(sender_id, dto.receiver_id, text, attachment)
    await uow.commit()

    payload = message_payload(msg)
    delivered = await presence.send_to(dto.receiver_id, "receive-message", payload)
    if origin is not None:
        await presence.deliver(origin, "message-sent", payload)

    logger.debug("Message %s %s -> %s (live=%s)", msg.id, sender_id, dto.receiver_id, delivered)
    return msg


async def mark_read(
    reader_id: uuid.UUID,
    counterpart_id: uuid.UUID,
    uow: UnitOfWork,
    presence: PresenceView,
    clock: Clock,
) -> int:
    """Flip every unread message counterpart → reader, then tell the counterpart."""
    updated = await uow.messages_w.mark_read(counterpart_id, reader_id, clock.now())
    await uow.commit()

    await presence.send_to(counterpart_id, "messages-read", {"readBy": str(reader_id)})
    return updated


async def add_reaction(
    actor_id: uuid.UUID,
    message_id: uuid.UUID,
    emoji: str,
    uow: UnitOfWork,
    presence: PresenceView,
    locks: KeyedLock,
    clock: Clock,
    *,
    counterpart_id: uuid.UUID | None = None,
    origin: ConnectionHandle | None = None,
) -> Message:
    """Set the actor's reaction on a message (replacing any previous one)."""
    emoji = normalize_emoji(emoji)

    async with locks.hold(message_id):
        msg = await uow.messages_w.get_for_update(message_id)
        msg = assert_message_access(actor_id, msg)
        msg = with_reaction(msg, actor_id, emoji, clock.now())
        await uow.messages_w.save_reactions(message_id, msg.reactions)
        await uow.commit()

    await _fanout_reactions(
        "reaction-added",
        {
            "messageId": str(message_id),
            "userId": str(actor_id),
            "emoji": emoji,
            "reactions": reactions_payload(msg),
        },
        msg,
        actor_id,
        presence,
        counterpart_id=counterpart_id,
        origin=origin,
    )
    return msg


async def remove_reaction(
    actor_id: uuid.UUID,
    message_id: uuid.UUID,
    uow: UnitOfWork,
    presence: PresenceView,
    locks: KeyedLock,
    *,
    counterpart_id: uuid.UUID | None = None,
    origin: ConnectionHandle | None = None,
) -> Message:
    """Drop the actor's reaction; a missing reaction is a no-op."""
    async with locks.hold(message_id):
        msg = await uow.messages_w.get_for_update(message_id)
        msg = assert_message_access(actor_id, msg)
        msg = without_reaction(msg, actor_id)
        await uow.messages_w.save_reactions(message_id, msg.reactions)
        await uow.commit()

    await _fanout_reactions(
        "reaction-removed",
        {
            "messageId": str(message_id),
            "userId": str(actor_id),
            "reactions": reactions_payload(msg),
        },
        msg,
        actor_id,
        presence,
        counterpart_id=counterpart_id,
        origin=origin,
    )
    return msg


async def _fanout_reactions(
    event_type: str,
    data: dict,
    msg: Message,
    actor_id: uuid.UUID,
    presence: PresenceView,
    *,
    counterpart_id: uuid.UUID | None,
    origin: ConnectionHandle | None,
) -> None:
    if origin is not None:
        await presence.deliver(origin, event_type, data)
    else:
        await presence.send_to(actor_id, event_type, data)

    other = msg.counterpart_of(actor_id)
    if counterpart_id is not None and counterpart_id != actor_id and msg.involves(counterpart_id):
        other = counterpart_id
    if other != actor_id:
        await presence.send_to(other, event_type, data)


async def list_conversation(
    user_id: uuid.UUID,
    other_id: uuid.UUID,
    uow: UnitOfWork,
    presence: PresenceView,
    clock: Clock,
) -> list[Message]:
    """History with *other_id*, oldest first; marks their messages read."""
    other = await uow.users.get_by_id(other_id)
    if other is None:
        raise NotFoundError("User not found")

    messages = await uow.messages.list_between(user_id, other_id)
    await mark_read(user_id, other_id, uow, presence, clock)
    return messages


async def list_conversations(
    user_id: uuid.UUID,
    uow: UnitOfWork,
) -> list[ConversationSummary]:
    latest = await uow.messages.latest_per_counterpart(user_id)
    counterpart_ids = [m.counterpart_of(user_id) for m in latest]
    users = {u.id: u for u in await uow.users.get_many(counterpart_ids)}
    return [
        ConversationSummary(user=users[cid], last_message=m)
        for cid, m in zip(counterpart_ids, latest)
        if cid in users
    ]


async def delete_message(
    actor_id: uuid.UUID,
    message_id: uuid.UUID,
    uow: UnitOfWork,
) -> None:
    msg = await uow.messages.get_by_id(message_id)
    assert_sender(actor_id, msg)
    await uow.messages_w.delete(message_id)
    await uow.commit()
