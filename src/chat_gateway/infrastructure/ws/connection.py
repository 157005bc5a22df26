from __future__ import annotations

import uuid
from typing import Any
from uuid import UUID

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from chat_gateway.domain.entities.user import User
from chat_gateway.infrastructure.ws.protocol import WsOutbound


class WebSocketConnection:
    """ConnectionHandle over a FastAPI WebSocket bound to an authenticated user."""

    def __init__(self, websocket: WebSocket, user: User) -> None:
        self._ws = websocket
        self.user = user
        self.connection_id = uuid.uuid4().hex[:12]

    @property
    def user_id(self) -> UUID:
        return self.user.id

    async def send(self, event_type: str, data: dict[str, Any]) -> None:
        payload = WsOutbound(type=event_type, data=data)
        await self._ws.send_text(payload.model_dump_json())

    async def close(self, code: int, reason: str) -> None:
        if self._ws.application_state == WebSocketState.DISCONNECTED:
            return
        await self._ws.close(code=code, reason=reason)

    def __repr__(self) -> str:
        return f"<WebSocketConnection {self.connection_id} user={self.user.id}>"
