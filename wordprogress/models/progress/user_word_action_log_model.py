from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from wordprogress.db.base_class import Base


class UserWordActionLog(Base):
    __tablename__ = "user_word_action_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    word_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # phase: 1=pre-test, 2=learning, 3=post-test, 4=quick review, 5=special training
    phase: Mapped[int | None] = mapped_column(Integer, nullable=True)
    action_type: Mapped[int] = mapped_column(Integer, nullable=False)

    is_correct: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    response_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    study_duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    speed_used: Mapped[int] = mapped_column(Integer, default=100, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
