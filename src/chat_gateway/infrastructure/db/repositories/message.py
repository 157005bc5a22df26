from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, and_, case, delete, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chat_gateway.domain.entities.message import Attachment, Message, Reaction
from chat_gateway.infrastructure.db.mappers import message as mapper
from chat_gateway.infrastructure.db.models.message import MessageModel


def _between(user_a: UUID, user_b: UUID):
    return or_(
        and_(MessageModel.sender_id == user_a, MessageModel.receiver_id == user_b),
        and_(MessageModel.sender_id == user_b, MessageModel.receiver_id == user_a),
    )


def latest_per_counterpart_stmt(user_id: UUID) -> Select:
    """Newest message with each counterpart of *user_id*, newest first."""
    counterpart = case(
        (MessageModel.sender_id == user_id, MessageModel.receiver_id),
        else_=MessageModel.sender_id,
    )
    ranked = (
        select(
            MessageModel.id.label("id"),
            func.row_number()
            .over(
                partition_by=counterpart,
                order_by=(MessageModel.created_at.desc(), MessageModel.id.desc()),
            )
            .label("rank"),
        )
        .where(or_(MessageModel.sender_id == user_id, MessageModel.receiver_id == user_id))
        .subquery()
    )
    return (
        select(MessageModel)
        .join(ranked, MessageModel.id == ranked.c.id)
        .where(ranked.c.rank == 1)
        .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
    )


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, message_id: UUID) -> Message | None:
        result = await self._session.get(MessageModel, message_id)
        return mapper.model_to_entity(result) if result else None

    async def list_between(self, user_a: UUID, user_b: UUID) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(_between(user_a, user_b))
            .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def latest_per_counterpart(self, user_id: UUID) -> list[Message]:
        result = await self._session.execute(latest_per_counterpart_stmt(user_id))
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        sender_id: UUID,
        receiver_id: UUID,
        text: str | None,
        attachment: Attachment | None,
    ) -> Message:
        stmt = (
            insert(MessageModel)
            .values(
                sender_id=sender_id,
                receiver_id=receiver_id,
                text=text,
                file_url=attachment.url if attachment else None,
                file_name=attachment.name if attachment else None,
                file_type=attachment.kind.value if attachment and attachment.kind else None,
                reactions=[],
            )
            .returning(MessageModel)
        )
        result = await self._session.execute(stmt)
        return mapper.model_to_entity(result.scalar_one())

    async def get_for_update(self, message_id: UUID) -> Message | None:
        stmt = (
            select(MessageModel)
            .where(MessageModel.id == message_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def save_reactions(
        self,
        message_id: UUID,
        reactions: tuple[Reaction, ...],
    ) -> None:
        stmt = (
            update(MessageModel)
            .where(MessageModel.id == message_id)
            .values(reactions=mapper.reactions_to_json(reactions))
        )
        await self._session.execute(stmt)

    async def mark_read(
        self,
        sender_id: UUID,
        receiver_id: UUID,
        read_at: datetime,
    ) -> int:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.sender_id == sender_id,
                MessageModel.receiver_id == receiver_id,
                MessageModel.is_read.is_(False),
            )
            .values(is_read=True, read_at=read_at)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def delete(self, message_id: UUID) -> None:
        await self._session.execute(delete(MessageModel).where(MessageModel.id == message_id))
