"""Content rules shared by the realtime and REST entry points."""
from __future__ import annotations

from chat_gateway.application.exceptions import ValidationError
from chat_gateway.config import settings
from chat_gateway.domain.entities.message import Attachment


def normalize_content(
    text: str | None,
    attachment: Attachment | None,
) -> tuple[str | None, Attachment | None]:
    """Trim text and reject a message that would carry nothing."""
    text = text.strip() if text else None
    text = text or None
    if attachment is not None and not attachment.url.strip():
        attachment = None

    if text is None and attachment is None:
        raise ValidationError("Message must have text or an attachment")
    if text is not None and len(text) > settings.MESSAGE_MAX_LENGTH:
        raise ValidationError(
            f"Message cannot exceed {settings.MESSAGE_MAX_LENGTH} characters"
        )
    return text, attachment


def normalize_emoji(emoji: str | None) -> str:
    emoji = (emoji or "").strip()
    if not emoji:
        raise ValidationError("Emoji is required")
    if len(emoji) > settings.REACTION_MAX_LENGTH:
        raise ValidationError("Emoji is too long")
    return emoji
