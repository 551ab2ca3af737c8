"""Append-only audit trail of scheduling decisions."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from wordprogress.db.base_class import Base


class ReviewScheduleLog(Base):
    __tablename__ = "review_schedule_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    word_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    review_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    schedule_days: Mapped[int] = mapped_column(Integer, nullable=False)
    next_review_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    strategy_id: Mapped[str] = mapped_column(String(64), nullable=False)

    review_config: Mapped[Dict[str, Any] | None] = mapped_column(JSON)
    review_log: Mapped[Dict[str, Any] | None] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


__all__ = ["ReviewScheduleLog"]
