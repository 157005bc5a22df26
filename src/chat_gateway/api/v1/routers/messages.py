from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Response, status

from chat_gateway.api.deps import ClockDep, CurrentUser, PresenceDep, ReactionLocksDep, UoWDep
from chat_gateway.api.v1.schemas.message import (
    ConversationResponse,
    ReactionRequest,
    SendMessageRequest,
)
from chat_gateway.application.dto.message import SendMessageDTO
from chat_gateway.application.dto.records import MessageRecord
from chat_gateway.services import message_service

router = APIRouter(prefix="/api/v1/messages", tags=["messages"])


@router.get("/conversations", response_model=list[ConversationResponse])
async def list_conversations(
    user: CurrentUser,
    uow: UoWDep,
) -> list[ConversationResponse]:
    summaries = await message_service.list_conversations(user.id, uow)
    return [ConversationResponse.model_validate(s) for s in summaries]


@router.get("/{user_id}", response_model=list[MessageRecord])
async def get_conversation(
    user_id: UUID,
    user: CurrentUser,
    uow: UoWDep,
    presence: PresenceDep,
    clock: ClockDep,
) -> list[MessageRecord]:
    messages = await message_service.list_conversation(user.id, user_id, uow, presence, clock)
    return [MessageRecord.model_validate(m) for m in messages]


@router.post("/{user_id}", response_model=MessageRecord, status_code=201)
async def send_message(
    user_id: UUID,
    body: SendMessageRequest,
    user: CurrentUser,
    uow: UoWDep,
    presence: PresenceDep,
) -> MessageRecord:
    dto = SendMessageDTO(
        receiver_id=user_id,
        text=body.text,
        attachment=body.attachment.to_entity() if body.attachment else None,
    )
    msg = await message_service.send_message(user.id, dto, uow, presence)
    return MessageRecord.model_validate(msg)


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    message_id: UUID,
    user: CurrentUser,
    uow: UoWDep,
) -> Response:
    await message_service.delete_message(user.id, message_id, uow)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{message_id}/reactions", response_model=MessageRecord)
async def add_reaction(
    message_id: UUID,
    body: ReactionRequest,
    user: CurrentUser,
    uow: UoWDep,
    presence: PresenceDep,
    locks: ReactionLocksDep,
    clock: ClockDep,
) -> MessageRecord:
    msg = await message_service.add_reaction(
        user.id, message_id, body.emoji, uow, presence, locks, clock,
    )
    return MessageRecord.model_validate(msg)


@router.delete("/{message_id}/reactions", response_model=MessageRecord)
async def remove_reaction(
    message_id: UUID,
    user: CurrentUser,
    uow: UoWDep,
    presence: PresenceDep,
    locks: ReactionLocksDep,
) -> MessageRecord:
    msg = await message_service.remove_reaction(user.id, message_id, uow, presence, locks)
    return MessageRecord.model_validate(msg)
