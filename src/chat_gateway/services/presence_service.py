"""Connection lifecycle: presence registration, durable flag, announcements."""
from __future__ import annotations

import logging
from uuid import UUID

from chat_gateway.application.ports.clock import Clock
from chat_gateway.application.ports.presence import ConnectionHandle
from chat_gateway.application.uow import UoWFactory
from chat_gateway.infrastructure.ws.manager import PresenceRegistry
from chat_gateway.infrastructure.ws.rooms import RoomRouter
from chat_gateway.services.typing_service import TypingRelay

logger = logging.getLogger(__name__)

CLOSE_REPLACED = 4000


async def connect(
    handle: ConnectionHandle,
    registry: PresenceRegistry,
    uow_factory: UoWFactory,
    clock: Clock,
    *,
    typing: TypingRelay | None = None,
) -> None:
    user_id = handle.user_id
    previous = registry.set_online(user_id, handle)
    if previous is not None:
        logger.info("User %s reconnected, closing previous connection", user_id)
        # the old connection's disconnect is stale and will not reset typing state
        if typing is not None:
            typing.forget(user_id)
        try:
            await previous.close(CLOSE_REPLACED, "Replaced by a newer connection")
        except Exception:
            logger.debug("Closing replaced connection failed", exc_info=True)

    await _persist_presence(user_id, True, uow_factory, clock)

    await registry.broadcast("user-status-change", {"userId": str(user_id), "isOnline": True})
    await registry.deliver(
        handle,
        "online-users",
        {"userIds": sorted(str(uid) for uid in registry.list_online())},
    )


async def disconnect(
    handle: ConnectionHandle,
    registry: PresenceRegistry,
    rooms: RoomRouter,
    typing: TypingRelay,
    uow_factory: UoWFactory,
    clock: Clock,
) -> bool:
    """Unwind presence for *handle*. Return False if a newer connection owns the entry."""
    user_id = handle.user_id
    rooms.leave_all(handle)
    if not registry.remove(user_id, handle):
        logger.debug("Stale connection of %s closed, presence untouched", user_id)
        return False
    typing.forget(user_id)

    await _persist_presence(user_id, False, uow_factory, clock)

    await registry.broadcast("user-status-change", {"userId": str(user_id), "isOnline": False})
    return True


async def _persist_presence(
    user_id: UUID,
    is_online: bool,
    uow_factory: UoWFactory,
    clock: Clock,
) -> None:
    try:
        async with uow_factory() as uow:
            await uow.users_w.set_presence(user_id, is_online=is_online, last_seen=clock.now())
            await uow.commit()
    except Exception:
        logger.warning("Failed to persist presence for %s (online=%s)", user_id, is_online, exc_info=True)
