from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from chat_gateway.api.deps import (
    ClockDep,
    PresenceDep,
    ReactionLocksDep,
    RoomsDep,
    TypingDep,
    UoWFactoryDep,
    VerifierDep,
)
from chat_gateway.api.middleware.correlation_id import correlation_id_ctx
from chat_gateway.application.dto.message import SendMessageDTO
from chat_gateway.application.exceptions import AppError, AuthenticationError, PersistenceError
from chat_gateway.application.locks import KeyedLock
from chat_gateway.application.ports.clock import Clock
from chat_gateway.application.ports.presence import ConnectionHandle
from chat_gateway.application.uow import UoWFactory
from chat_gateway.config import settings
from chat_gateway.infrastructure.ws.connection import WebSocketConnection
from chat_gateway.infrastructure.ws.manager import PresenceRegistry
from chat_gateway.infrastructure.ws.protocol import (
    AddReactionPayload,
    MarkReadPayload,
    RemoveReactionPayload,
    RoomPayload,
    SendMessagePayload,
    TypingPayload,
    WsInbound,
    parse_envelope,
    parse_payload,
)
from chat_gateway.infrastructure.ws.rooms import RoomRouter
from chat_gateway.services import message_service, presence_service, session_service
from chat_gateway.services.typing_service import TypingRelay

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

CLOSE_UNAUTHENTICATED = 4001
CLOSE_STORE_UNAVAILABLE = 1011


@dataclass(slots=True)
class _Session:
    conn: WebSocketConnection
    presence: PresenceRegistry
    rooms: RoomRouter
    typing: TypingRelay
    locks: KeyedLock
    uow_factory: UoWFactory
    clock: Clock


def _bearer_token(websocket: WebSocket) -> str | None:
    header = websocket.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return None


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    presence: PresenceDep,
    rooms: RoomsDep,
    typing: TypingDep,
    locks: ReactionLocksDep,
    uow_factory: UoWFactoryDep,
    verifier: VerifierDep,
    clock: ClockDep,
    token: str | None = Query(None),
) -> None:
    try:
        async with uow_factory() as uow:
            user = await session_service.authenticate(
                token or _bearer_token(websocket), verifier, uow.users,
            )
    except AuthenticationError as exc:
        logger.info("WS auth rejected: %s", exc.detail)
        await websocket.close(code=CLOSE_UNAUTHENTICATED, reason=f"Authentication error: {exc.detail}")
        return
    except PersistenceError:
        logger.exception("WS auth could not reach the store")
        await websocket.close(code=CLOSE_STORE_UNAVAILABLE, reason="Store unavailable")
        return

    await websocket.accept()
    conn = WebSocketConnection(websocket, user)
    ctx_token = correlation_id_ctx.set(f"ws-{conn.connection_id}")
    logger.info("User connected: %s (%s)", user.username, user.id)

    session = _Session(conn, presence, rooms, typing, locks, uow_factory, clock)
    await presence_service.connect(conn, presence, uow_factory, clock, typing=typing)

    heartbeat_task = asyncio.create_task(
        heartbeat(conn, presence, settings.WS_HEARTBEAT_SECONDS),
        name=f"ws-heartbeat-{conn.connection_id}",
    )
    try:
        await _read_loop(websocket, session)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", user.id)
    finally:
        heartbeat_task.cancel()
        await presence_service.disconnect(conn, presence, rooms, typing, uow_factory, clock)
        logger.info("User disconnected: %s (%s)", user.username, user.id)
        correlation_id_ctx.reset(ctx_token)


async def heartbeat(conn: ConnectionHandle, presence: PresenceRegistry, interval: float) -> None:
    """Send ``pong`` every *interval* seconds until a delivery fails or the task is cancelled."""
    while True:
        await asyncio.sleep(interval)
        if not await presence.deliver(conn, "pong", {}):
            logger.debug("Heartbeat stopped for %s", conn.user_id)
            return


async def _read_loop(ws: WebSocket, session: _Session) -> None:
    while True:
        raw = await ws.receive_text()
        try:
            envelope = parse_envelope(raw)
        except AppError as exc:
            await _send_error(session, None, exc.code, exc.detail)
            continue
        await _dispatch(session, envelope)


async def _dispatch(session: _Session, envelope: WsInbound) -> None:
    """Run one event handler; its failure is reported to this client only."""
    try:
        payload = parse_payload(envelope)
        await _handle(session, envelope.type, payload)
    except AppError as exc:
        await _send_error(session, envelope.type, exc.code, exc.detail)
    except Exception:
        logger.exception("Handler %s failed for %s", envelope.type, session.conn.user_id)
        await _send_error(session, envelope.type, "internal_error", f"Failed to process {envelope.type}")


async def _handle(session: _Session, event_type: str, payload: object) -> None:
    conn = session.conn
    user_id = conn.user_id

    if event_type == "ping":
        await conn.send("pong", {})

    elif event_type == "send-message":
        assert isinstance(payload, SendMessagePayload)
        dto = SendMessageDTO(
            receiver_id=payload.receiver_id,
            text=payload.text,
            attachment=payload.attachment.to_entity() if payload.attachment else None,
        )
        async with session.uow_factory() as uow:
            await message_service.send_message(
                user_id, dto, uow, session.presence, origin=conn,
            )

    elif event_type == "typing":
        assert isinstance(payload, TypingPayload)
        await session.typing.relay(
            user_id, payload.receiver_id, payload.is_typing, username=conn.user.username,
        )

    elif event_type == "mark-read":
        assert isinstance(payload, MarkReadPayload)
        async with session.uow_factory() as uow:
            await message_service.mark_read(
                user_id, payload.sender_id, uow, session.presence, session.clock,
            )

    elif event_type == "add-reaction":
        assert isinstance(payload, AddReactionPayload)
        async with session.uow_factory() as uow:
            await message_service.add_reaction(
                user_id,
                payload.message_id,
                payload.emoji,
                uow,
                session.presence,
                session.locks,
                session.clock,
                counterpart_id=payload.receiver_id,
                origin=conn,
            )

    elif event_type == "remove-reaction":
        assert isinstance(payload, RemoveReactionPayload)
        async with session.uow_factory() as uow:
            await message_service.remove_reaction(
                user_id,
                payload.message_id,
                uow,
                session.presence,
                session.locks,
                counterpart_id=payload.receiver_id,
                origin=conn,
            )

    elif event_type == "join-room":
        assert isinstance(payload, RoomPayload)
        session.rooms.join(conn, payload.other_user_id)

    elif event_type == "leave-room":
        assert isinstance(payload, RoomPayload)
        session.rooms.leave(conn, payload.other_user_id)


async def _send_error(session: _Session, event_type: str | None, code: str, message: str) -> None:
    await session.presence.deliver(
        session.conn,
        "error",
        {"code": code, "event": event_type, "message": message},
    )
