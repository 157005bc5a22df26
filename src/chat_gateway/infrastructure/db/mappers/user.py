from __future__ import annotations

from chat_gateway.domain.entities.user import User
from chat_gateway.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        username=model.username,
        email=model.email,
        profile_picture=model.profile_picture,
        is_online=model.is_online,
        last_seen=model.last_seen,
        created_at=model.created_at,
    )
