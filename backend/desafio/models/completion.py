from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Boolean, DateTime, Uuid, func
from desafio.db import Base
from desafio.models.challenge import _utcnow


class ChallengeCompletion(Base):
    __tablename__ = "challenge_completions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # No FK to admin_challenges: a completion keeps the slug/name it was submitted under
    challenge_slug: Mapped[str] = mapped_column(String(120), index=True, nullable=False)
    challenge_name: Mapped[str] = mapped_column(String(160), nullable=False)

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    state: Mapped[str] = mapped_column(String(2), nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    whatsapp: Mapped[str] = mapped_column(String(20), nullable=False)
    order_number: Mapped[str] = mapped_column(String(64), nullable=False)

    strava_screenshot_url: Mapped[str] = mapped_column(Text(), nullable=False)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")  # 'active'|'archived'
    is_confirmed: Mapped[bool | None] = mapped_column(Boolean, nullable=True, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True, nullable=False
    )
