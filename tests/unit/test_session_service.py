from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from chat_gateway.application.exceptions import AuthenticationError
from chat_gateway.config import settings
from chat_gateway.infrastructure.auth.hs256_verifier import HS256Verifier
from chat_gateway.services.session_service import authenticate


def _token(claims: dict, secret: str = settings.JWT_SECRET) -> str:
    return jwt.encode(claims, secret, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def verifier() -> HS256Verifier:
    return HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)


@pytest.mark.asyncio
async def test_valid_token_resolves_user(uow, alice, verifier):
    user = await authenticate(_token({"sub": str(alice.id)}), verifier, uow.users)

    assert user == alice


@pytest.mark.asyncio
async def test_legacy_id_claim_is_accepted(uow, alice, verifier):
    user = await authenticate(_token({"id": str(alice.id)}), verifier, uow.users)

    assert user.id == alice.id


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, ""])
async def test_missing_token(uow, verifier, token):
    with pytest.raises(AuthenticationError, match="No token"):
        await authenticate(token, verifier, uow.users)


@pytest.mark.asyncio
async def test_wrong_signature(uow, alice, verifier):
    token = _token({"sub": str(alice.id)}, secret="another-secret-that-is-long-enough-too")

    with pytest.raises(AuthenticationError, match="Invalid token"):
        await authenticate(token, verifier, uow.users)


@pytest.mark.asyncio
async def test_expired_token(uow, alice, verifier):
    expired = datetime.now(timezone.utc) - timedelta(minutes=5)

    with pytest.raises(AuthenticationError, match="expired"):
        await authenticate(_token({"sub": str(alice.id), "exp": expired}), verifier, uow.users)


@pytest.mark.asyncio
async def test_garbage_token(uow, verifier):
    with pytest.raises(AuthenticationError):
        await authenticate("not-a-jwt", verifier, uow.users)


@pytest.mark.asyncio
async def test_non_uuid_subject(uow, verifier):
    with pytest.raises(AuthenticationError, match="subject"):
        await authenticate(_token({"sub": "42"}), verifier, uow.users)


@pytest.mark.asyncio
async def test_unknown_user(uow, verifier):
    with pytest.raises(AuthenticationError, match="User not found"):
        await authenticate(_token({"sub": str(uuid.uuid4())}), verifier, uow.users)
