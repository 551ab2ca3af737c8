"""Models tracking what each user knows about each word."""

from .review_schedule_log_model import ReviewScheduleLog
from .user_word_action_log_model import UserWordActionLog
from .user_word_progress_model import UserWordProgress
from .user_word_test_history_model import UserWordTestHistory

__all__ = [
    "ReviewScheduleLog",
    "UserWordActionLog",
    "UserWordProgress",
    "UserWordTestHistory",
]
