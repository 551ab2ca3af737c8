"""Utility helpers for test factories."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from wordprogress.models.enums import ProficiencyLevel, StrategyType
from wordprogress.schemas.progress_schema import ReviewStrategyOut, UserWordProgressState
from wordprogress.services.scheduling_engine import AdaptiveOutcome

NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


def make_strategy(**kwargs) -> ReviewStrategyOut:
    defaults = {
        "id": "strategy_test",
        "strategy_type": StrategyType.TRADITIONAL,
        "strategy_name": "Test ladder",
        "applicable_condition": "any",
        "interval_rule": "1d,3d,7d",
    }
    defaults.update(kwargs)
    return ReviewStrategyOut(**defaults)


def make_progress(**kwargs) -> UserWordProgressState:
    defaults = {
        "id": 1,
        "user_id": "user-1",
        "word_id": "word-1",
        "is_long_difficult": False,
        "proficiency_level": ProficiencyLevel.L0,
        "version": 0,
    }
    defaults.update(kwargs)
    return UserWordProgressState(**defaults)


class FixedAdaptive:
    """Adaptive stand-in: ``level + 1`` days, counting its own reps."""

    def __init__(self):
        self.calls = []

    def next_review(self, config, level, now):
        self.calls.append((config, level, now))
        reps = int((config or {}).get("reps", 0)) + 1
        next_review = now + timedelta(days=int(level) + 1)
        return AdaptiveOutcome(
            config={"reps": reps, "last_level": int(level)},
            next_review_date=next_review,
            review_log={"rating": int(level) + 1},
        )

    def preview(self, config, now):
        return []


class BackwardsAdaptive:
    """Returns a next review in the past."""

    def next_review(self, config, level, now):
        return AdaptiveOutcome(config={}, next_review_date=now - timedelta(hours=1))
