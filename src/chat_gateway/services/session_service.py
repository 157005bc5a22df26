from __future__ import annotations

from chat_gateway.application.exceptions import AuthenticationError
from chat_gateway.application.ports.auth import TokenVerifier
from chat_gateway.application.repositories.user import UserReader
from chat_gateway.domain.entities.user import User


async def authenticate(
    token: str | None,
    verifier: TokenVerifier,
    users: UserReader,
) -> User:
    """Resolve a bearer token to the user it was issued for.

    Evaluated once per connection attempt; any failure raises
    AuthenticationError and leaves no state behind.
    """
    if not token:
        raise AuthenticationError("No token provided")
    principal = await verifier.verify(token)
    user = await users.get_by_id(principal.subject_id)
    if user is None:
        raise AuthenticationError("User not found")
    return user
