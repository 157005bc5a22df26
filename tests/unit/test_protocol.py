from __future__ import annotations

import json
import uuid

import pytest

from chat_gateway.application.exceptions import ValidationError
from chat_gateway.domain.value_objects.enums import AttachmentKind
from chat_gateway.infrastructure.ws.protocol import (
    AddReactionPayload,
    EmptyPayload,
    SendMessagePayload,
    TypingPayload,
    WsInbound,
    parse_envelope,
    parse_payload,
)


def test_envelope_without_data_defaults_to_empty():
    envelope = parse_envelope('{"type": "ping"}')

    assert envelope.type == "ping"
    assert isinstance(parse_payload(envelope), EmptyPayload)


@pytest.mark.parametrize("raw", ["not json", "[]", '{"data": {}}'])
def test_malformed_frames(raw):
    with pytest.raises(ValidationError):
        parse_envelope(raw)


def test_unknown_event_type():
    with pytest.raises(ValidationError, match="Unknown event type"):
        parse_payload(WsInbound(type="shout", data={}))


def test_send_message_uses_camel_case_fields():
    receiver = uuid.uuid4()
    raw = json.dumps({
        "type": "send-message",
        "data": {
            "receiverId": str(receiver),
            "text": "hi",
            "attachment": {"url": "https://cdn.example.com/a.pdf", "name": "a.pdf", "kind": "document"},
        },
    })

    payload = parse_payload(parse_envelope(raw))

    assert isinstance(payload, SendMessagePayload)
    assert payload.receiver_id == receiver
    attachment = payload.attachment.to_entity()
    assert attachment.kind is AttachmentKind.DOCUMENT
    assert attachment.name == "a.pdf"


def test_typing_requires_flag():
    envelope = WsInbound(type="typing", data={"receiverId": str(uuid.uuid4())})

    with pytest.raises(ValidationError, match="isTyping"):
        parse_payload(envelope)

    envelope.data["isTyping"] = False
    assert isinstance(parse_payload(envelope), TypingPayload)


def test_bad_uuid_is_reported_by_field():
    envelope = WsInbound(type="add-reaction", data={"messageId": "nope", "emoji": "👍"})

    with pytest.raises(ValidationError, match="messageId"):
        parse_payload(envelope)


def test_reaction_receiver_is_optional():
    message_id = uuid.uuid4()
    payload = parse_payload(WsInbound(type="add-reaction", data={"messageId": str(message_id), "emoji": "👍"}))

    assert isinstance(payload, AddReactionPayload)
    assert payload.message_id == message_id
    assert payload.receiver_id is None
