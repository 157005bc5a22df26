from __future__ import annotations

from uuid import UUID

import jwt

from chat_gateway.application.dto.principal import Principal
from chat_gateway.application.exceptions import AuthenticationError


class HS256Verifier:
    """Verify session JWTs signed with a shared HS256 secret.

    Signature and ``exp`` are checked by PyJWT. The subject is read from
    ``sub`` and falls back to the legacy ``id`` claim.
    """

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> Principal:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationError("Invalid token") from exc

        subject = payload.get("sub", payload.get("id"))
        try:
            subject_id = UUID(str(subject))
        except ValueError as exc:
            raise AuthenticationError("Invalid token subject") from exc
        return Principal(subject_id=subject_id)
