from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Principal:
    """Caller identity extracted from a verified token, before store lookup."""

    subject_id: UUID
