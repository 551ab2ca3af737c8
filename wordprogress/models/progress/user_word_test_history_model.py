# Fichier: wordprogress/models/progress/user_word_test_history_model.py

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from wordprogress.db.base_class import Base


class UserWordTestHistory(Base):
    """
    Level reached by a user on a word during one test phase of one day.
    Ordered by ``test_date`` these rows form the assessment history.
    """
    __tablename__ = "user_word_test_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    word_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    test_date: Mapped[date] = mapped_column(Date, nullable=False)
    phase: Mapped[int] = mapped_column(Integer, nullable=False)  # 1=pre-test, 3=post-test
    test_level: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "word_id", "phase", "test_date", name="uq_user_word_test_day"),
    )
