"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator
from uuid import UUID

import pytest

from chat_gateway.application.locks import KeyedLock
from chat_gateway.domain.entities.message import Attachment, Message, Reaction
from chat_gateway.domain.entities.user import User
from chat_gateway.infrastructure.ws.manager import PresenceRegistry
from chat_gateway.infrastructure.ws.rooms import RoomRouter
from chat_gateway.services.typing_service import TypingRelay


def make_user(username: str = "alice", *, user_id: UUID | None = None, is_online: bool = False) -> User:
    now = datetime.now(timezone.utc)
    return User(
        id=user_id or uuid.uuid4(),
        username=username,
        email=f"{username}@example.com",
        profile_picture=None,
        is_online=is_online,
        last_seen=now,
        created_at=now,
    )


def make_message(
    sender_id: UUID,
    receiver_id: UUID,
    *,
    text: str | None = "hello",
    is_read: bool = False,
    created_at: datetime | None = None,
    reactions: tuple[Reaction, ...] = (),
) -> Message:
    return Message(
        id=uuid.uuid4(),
        sender_id=sender_id,
        receiver_id=receiver_id,
        text=text,
        attachment=None,
        reactions=reactions,
        is_read=is_read,
        read_at=None,
        created_at=created_at or datetime.now(timezone.utc),
    )


class FrozenClock:
    def __init__(self, now: datetime | None = None) -> None:
        self.current = now or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@dataclass(eq=False)
class FakeConnection:
    """ConnectionHandle that records what the gateway sends to it."""

    user_id: UUID
    sent: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    closed: tuple[int, str] | None = None
    fail_sends: bool = False

    async def send(self, event_type: str, data: dict[str, Any]) -> None:
        if self.fail_sends:
            raise ConnectionResetError("peer gone")
        self.sent.append((event_type, data))

    async def close(self, code: int, reason: str) -> None:
        self.closed = (code, reason)

    def events(self, event_type: str) -> list[dict[str, Any]]:
        return [data for kind, data in self.sent if kind == event_type]


@dataclass
class FakeUserReader:
    _store: dict[UUID, User] = field(default_factory=dict)

    def add(self, user: User) -> User:
        self._store[user.id] = user
        return user

    async def get_by_id(self, user_id: UUID) -> User | None:
        return self._store.get(user_id)

    async def get_many(self, user_ids: list[UUID]) -> list[User]:
        return [self._store[uid] for uid in user_ids if uid in self._store]

    async def list_except(self, user_id: UUID) -> list[User]:
        others = [u for u in self._store.values() if u.id != user_id]
        return sorted(others, key=lambda u: (not u.is_online, -(u.last_seen or u.created_at).timestamp()))


@dataclass
class FakeUserWriter:
    _reader: FakeUserReader
    fail: bool = False
    writes: list[tuple[UUID, bool]] = field(default_factory=list)

    async def set_presence(self, user_id: UUID, *, is_online: bool, last_seen: datetime) -> None:
        if self.fail:
            raise ConnectionRefusedError("store down")
        self.writes.append((user_id, is_online))
        user = self._reader._store.get(user_id)
        if user is not None:
            self._reader._store[user_id] = replace(user, is_online=is_online, last_seen=last_seen)


@dataclass
class FakeMessageReader:
    _messages: dict[UUID, Message] = field(default_factory=dict)

    def add(self, message: Message) -> Message:
        self._messages[message.id] = message
        return message

    async def get_by_id(self, message_id: UUID) -> Message | None:
        return self._messages.get(message_id)

    async def list_between(self, user_a: UUID, user_b: UUID) -> list[Message]:
        pair = {user_a, user_b}
        found = [m for m in self._messages.values() if {m.sender_id, m.receiver_id} == pair]
        return sorted(found, key=lambda m: m.created_at)

    async def latest_per_counterpart(self, user_id: UUID) -> list[Message]:
        latest: dict[UUID, Message] = {}
        for m in sorted(self._messages.values(), key=lambda m: m.created_at):
            if m.involves(user_id):
                latest[m.counterpart_of(user_id)] = m
        return sorted(latest.values(), key=lambda m: m.created_at, reverse=True)


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader
    fail_create: bool = False

    async def create(
        self,
        sender_id: UUID,
        receiver_id: UUID,
        text: str | None,
        attachment: Attachment | None,
    ) -> Message:
        if self.fail_create:
            raise ConnectionRefusedError("store down")
        msg = Message(
            id=uuid.uuid4(),
            sender_id=sender_id,
            receiver_id=receiver_id,
            text=text,
            attachment=attachment,
            reactions=(),
            is_read=False,
            read_at=None,
            created_at=datetime.now(timezone.utc),
        )
        return self._reader.add(msg)

    async def get_for_update(self, message_id: UUID) -> Message | None:
        msg = self._reader._messages.get(message_id)
        # hand control back to the loop between read and write, like a real store round-trip
        await asyncio.sleep(0)
        return msg

    async def save_reactions(self, message_id: UUID, reactions: tuple[Reaction, ...]) -> None:
        await asyncio.sleep(0)
        msg = self._reader._messages[message_id]
        self._reader._messages[message_id] = replace(msg, reactions=reactions)

    async def mark_read(self, sender_id: UUID, receiver_id: UUID, read_at: datetime) -> int:
        count = 0
        for mid, m in list(self._reader._messages.items()):
            if m.sender_id == sender_id and m.receiver_id == receiver_id and not m.is_read:
                self._reader._messages[mid] = replace(m, is_read=True, read_at=read_at)
                count += 1
        return count

    async def delete(self, message_id: UUID) -> None:
        self._reader._messages.pop(message_id, None)


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    users: FakeUserReader = field(default_factory=FakeUserReader)
    users_w: FakeUserWriter | None = None
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    commits: int = 0

    def __post_init__(self) -> None:
        if self.users_w is None:
            self.users_w = FakeUserWriter(self.users)
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        pass


def uow_factory_for(uow: FakeUoW):
    @asynccontextmanager
    async def _factory() -> AsyncIterator[FakeUoW]:
        yield uow

    return _factory


@pytest.fixture
def uow() -> FakeUoW:
    return FakeUoW()


@pytest.fixture
def alice(uow: FakeUoW) -> User:
    return uow.users.add(make_user("alice"))


@pytest.fixture
def bob(uow: FakeUoW) -> User:
    return uow.users.add(make_user("bob"))


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def registry() -> PresenceRegistry:
    return PresenceRegistry()


@pytest.fixture
def rooms() -> RoomRouter:
    return RoomRouter()


@pytest.fixture
def typing_relay(registry: PresenceRegistry) -> TypingRelay:
    return TypingRelay(registry)


@pytest.fixture
def locks() -> KeyedLock:
    return KeyedLock()
