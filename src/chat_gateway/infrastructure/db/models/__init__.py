"""Import all models so Alembic can discover them via Base.metadata."""
from chat_gateway.infrastructure.db.models.message import MessageModel
from chat_gateway.infrastructure.db.models.user import UserModel

__all__ = [
    "MessageModel",
    "UserModel",
]
