"""Per (user, word) learning progress and review schedule."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from wordprogress.db.base_class import Base


class UserWordProgress(Base):
    """One row per (user, word); mutated only by scheduling decisions."""

    __tablename__ = "user_word_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    word_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    is_long_difficult: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    proficiency_level: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    strategy_id: Mapped[str | None] = mapped_column(String(64))

    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_review_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    next_review_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    reviewed_times: Mapped[int | None] = mapped_column(Integer)
    review_config: Mapped[Dict[str, Any] | None] = mapped_column(JSON)

    # Compare-and-swap token, bumped on every committed scheduling decision.
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "word_id", name="uq_user_word_progress"),
    )


__all__ = ["UserWordProgress"]
