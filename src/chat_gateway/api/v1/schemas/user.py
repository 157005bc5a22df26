from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from chat_gateway.application.dto.records import UserRecord


class UserResponse(UserRecord):
    email: str
    created_at: datetime


class OnlineUsersResponse(BaseModel):
    user_ids: list[UUID]

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
