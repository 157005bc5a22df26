from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class User:
    """Account projection as seen by the gateway (no credential material)."""

    id: UUID
    username: str
    email: str
    profile_picture: str | None
    is_online: bool
    last_seen: datetime | None
    created_at: datetime
