"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends
from fastapi.requests import HTTPConnection
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from chat_gateway.application.locks import KeyedLock
from chat_gateway.application.ports.auth import TokenVerifier
from chat_gateway.application.ports.clock import Clock, SystemClock
from chat_gateway.application.uow import UnitOfWork, UoWFactory
from chat_gateway.config import settings
from chat_gateway.domain.entities.user import User
from chat_gateway.infrastructure.auth.hs256_verifier import HS256Verifier
from chat_gateway.infrastructure.db.uow import open_uow
from chat_gateway.infrastructure.ws.manager import PresenceRegistry
from chat_gateway.infrastructure.ws.rooms import RoomRouter
from chat_gateway.services import session_service
from chat_gateway.services.typing_service import TypingRelay

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_uow() -> AsyncIterator[UnitOfWork]:
    async with open_uow() as uow:
        yield uow


def get_uow_factory() -> UoWFactory:
    return open_uow


UoWDep = Annotated[UnitOfWork, Depends(get_uow)]
UoWFactoryDep = Annotated[UoWFactory, Depends(get_uow_factory)]

_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)
    return _verifier


VerifierDep = Annotated[TokenVerifier, Depends(get_verifier)]


def get_clock() -> Clock:
    return SystemClock()


ClockDep = Annotated[Clock, Depends(get_clock)]


def get_presence(conn: HTTPConnection) -> PresenceRegistry:
    return conn.app.state.presence


def get_rooms(conn: HTTPConnection) -> RoomRouter:
    return conn.app.state.rooms


def get_typing(conn: HTTPConnection) -> TypingRelay:
    return conn.app.state.typing


def get_reaction_locks(conn: HTTPConnection) -> KeyedLock:
    return conn.app.state.reaction_locks


PresenceDep = Annotated[PresenceRegistry, Depends(get_presence)]
RoomsDep = Annotated[RoomRouter, Depends(get_rooms)]
TypingDep = Annotated[TypingRelay, Depends(get_typing)]
ReactionLocksDep = Annotated[KeyedLock, Depends(get_reaction_locks)]


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
    verifier: VerifierDep,
    uow: UoWDep,
) -> User:
    token = credentials.credentials if credentials else None
    return await session_service.authenticate(token, verifier, uow.users)


CurrentUser = Annotated[User, Depends(get_current_user)]
