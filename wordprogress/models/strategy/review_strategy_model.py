"""Review strategy definitions (fixed ladders and the adaptive algorithm)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from wordprogress.db.base_class import Base


class ReviewStrategy(Base):
    """Immutable once created; looked up by the resolver, never edited by the core."""

    __tablename__ = "review_strategy"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # 1 = traditional fixed-interval ladder, 2 = adaptive (FSRS)
    strategy_type: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    strategy_name: Mapped[str] = mapped_column(String(100), nullable=False)
    applicable_condition: Mapped[str] = mapped_column(String(255), nullable=False)
    # e.g. "1h,3h,1d"; only meaningful for traditional strategies
    interval_rule: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


__all__ = ["ReviewStrategy"]
