from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime

class ChallengePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    description: str | None = None
    badge: str | None = None
    highlight: str | None = None
    is_active: bool
    created_at: datetime

class ChallengeCreate(BaseModel):
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    badge: str | None = None
    highlight: str | None = None

class ChallengeUpdate(BaseModel):
    """Partial update; only fields of the right type are applied."""
    name: str | None = None
    slug: str | None = None
    is_active: bool | None = Field(default=None, strict=True)
    description: str | None = None
    badge: str | None = None
    highlight: str | None = None

    def changes(self) -> dict:
        updates: dict = {}
        for field in ("name", "slug"):
            value = getattr(self, field)
            if isinstance(value, str):
                updates[field] = value.strip()
        for field in ("description", "badge", "highlight"):
            if field in self.model_fields_set:
                value = getattr(self, field)
                updates[field] = value.strip() if isinstance(value, str) and value.strip() else None
        if self.is_active is not None:
            updates["is_active"] = self.is_active
        return updates
