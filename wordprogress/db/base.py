"""Declares every SQLAlchemy model so ``Base.metadata`` knows the full schema."""

from wordprogress.db.base_class import Base

# Strategies
from wordprogress.models.strategy.review_strategy_model import ReviewStrategy

# Progress & logs
from wordprogress.models.progress.user_word_progress_model import UserWordProgress
from wordprogress.models.progress.review_schedule_log_model import ReviewScheduleLog
from wordprogress.models.progress.user_word_test_history_model import UserWordTestHistory
from wordprogress.models.progress.user_word_action_log_model import UserWordActionLog

__all__ = (
    "Base",
    "ReviewStrategy",
    "UserWordProgress",
    "ReviewScheduleLog",
    "UserWordTestHistory",
    "UserWordActionLog",
)
