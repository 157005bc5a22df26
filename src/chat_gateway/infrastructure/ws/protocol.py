"""WebSocket envelope and per-event payload models."""
from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from chat_gateway.application.exceptions import ValidationError
from chat_gateway.domain.entities.message import Attachment
from chat_gateway.domain.value_objects.enums import AttachmentKind


class WsInbound(BaseModel):
    """Client → Server."""

    type: str
    data: dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str
    data: dict[str, Any] = {}


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AttachmentPayload(_Payload):
    url: str
    name: str | None = None
    kind: AttachmentKind | None = None

    def to_entity(self) -> Attachment:
        return Attachment(url=self.url, name=self.name, kind=self.kind)


class SendMessagePayload(_Payload):
    receiver_id: UUID
    text: str | None = None
    attachment: AttachmentPayload | None = None


class TypingPayload(_Payload):
    receiver_id: UUID
    is_typing: bool


class MarkReadPayload(_Payload):
    sender_id: UUID


class AddReactionPayload(_Payload):
    message_id: UUID
    emoji: str
    receiver_id: UUID | None = None


class RemoveReactionPayload(_Payload):
    message_id: UUID
    receiver_id: UUID | None = None


class RoomPayload(_Payload):
    other_user_id: UUID


class EmptyPayload(_Payload):
    pass


INBOUND_PAYLOADS: dict[str, type[_Payload]] = {
    "send-message": SendMessagePayload,
    "typing": TypingPayload,
    "mark-read": MarkReadPayload,
    "add-reaction": AddReactionPayload,
    "remove-reaction": RemoveReactionPayload,
    "join-room": RoomPayload,
    "leave-room": RoomPayload,
    "ping": EmptyPayload,
}


def parse_envelope(raw: str) -> WsInbound:
    try:
        return WsInbound.model_validate_json(raw)
    except PydanticValidationError as exc:
        raise ValidationError("Malformed frame") from exc


def parse_payload(envelope: WsInbound) -> _Payload:
    """Validate ``envelope.data`` against the model registered for its type."""
    model = INBOUND_PAYLOADS.get(envelope.type)
    if model is None:
        raise ValidationError(f"Unknown event type: {envelope.type}")
    try:
        return model.model_validate(envelope.data)
    except PydanticValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise ValidationError(f"Invalid {envelope.type} payload: {fields}") from exc
