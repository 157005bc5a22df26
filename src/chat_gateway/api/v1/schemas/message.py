from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from chat_gateway.application.dto.records import MessageRecord, UserRecord
from chat_gateway.infrastructure.ws.protocol import AttachmentPayload


class _Camel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SendMessageRequest(_Camel):
    text: str | None = None
    attachment: AttachmentPayload | None = None


class ReactionRequest(_Camel):
    emoji: str


class ConversationResponse(_Camel):
    user: UserRecord
    last_message: MessageRecord
