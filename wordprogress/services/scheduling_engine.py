"""Turn an assessed level and a strategy into the next review instant.

The engine is stateless and pure: everything it needs comes in through the
progress snapshot, and everything it decides goes out as a
``ScheduleDecision`` (updated progress + log entry) for the store to commit
atomically. Calling it twice with the same inputs yields identical output.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Protocol

from wordprogress.core.exceptions import InvalidSchedule, StrategyConfigurationError
from wordprogress.models.enums import ProficiencyLevel, StrategyType
from wordprogress.schemas.progress_schema import (
    ReviewScheduleLogEntry,
    ReviewStrategyOut,
    ScheduleDecision,
    UserWordProgressState,
)
from wordprogress.services.strategy_resolver import parse_interval_rule
from wordprogress.utils.time_utils import ensure_utc

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class AdaptiveOutcome:
    config: Dict[str, Any]
    next_review_date: datetime
    review_log: Optional[Dict[str, Any]] = field(default=None)


class AdaptiveAlgorithm(Protocol):
    """Black-box spaced-repetition update: ``(config, level, now) -> (config', next)``."""

    def next_review(
        self,
        config: Optional[Dict[str, Any]],
        level: ProficiencyLevel,
        now: datetime,
    ) -> AdaptiveOutcome:
        ...


def ladder_interval(strategy: ReviewStrategyOut, reviewed_times: int) -> timedelta:
    """Interval at ``reviewed_times`` on the ladder, clamped to the last rung."""

    ladder = parse_interval_rule(strategy.interval_rule)
    index = min(max(reviewed_times, 0), len(ladder) - 1)
    return ladder[index]


def schedule_days_between(start: datetime, end: datetime) -> int:
    return math.ceil((end - start) / ONE_DAY)


class SchedulingEngine:
    def __init__(self, adaptive: Optional[AdaptiveAlgorithm] = None):
        self.adaptive = adaptive

    def schedule(
        self,
        progress: UserWordProgressState,
        level: ProficiencyLevel,
        strategy: ReviewStrategyOut,
        now: datetime,
    ) -> ScheduleDecision:
        now = ensure_utc(now)
        level = ProficiencyLevel(level)
        reviewed_times = progress.reviewed_times or 0

        if progress.last_review_date is not None and now < progress.last_review_date:
            raise InvalidSchedule(
                f"review at {now.isoformat()} precedes last review {progress.last_review_date.isoformat()}"
            )

        if strategy.strategy_type is StrategyType.TRADITIONAL:
            interval = ladder_interval(strategy, reviewed_times)
            next_review = now + interval
            review_config = progress.review_config
            log_config = None
            review_log: Optional[Dict[str, Any]] = {
                "strategy_type": StrategyType.TRADITIONAL.name,
                "reviewed_times": reviewed_times,
                "proficiency_level": int(level),
                "interval_hours": interval.total_seconds() / 3600,
            }
        else:
            if self.adaptive is None:
                raise StrategyConfigurationError(
                    f"strategy '{strategy.id}' is adaptive but no adaptive algorithm is configured"
                )
            outcome = self.adaptive.next_review(progress.review_config, level, now)
            next_review = ensure_utc(outcome.next_review_date)
            review_config = outcome.config
            log_config = outcome.config
            review_log = outcome.review_log

        if next_review < now:
            raise InvalidSchedule(
                f"strategy '{strategy.id}' scheduled {next_review.isoformat()} before review at {now.isoformat()}"
            )

        updated = progress.model_copy(
            update={
                "proficiency_level": level,
                "strategy_id": strategy.id,
                "start_date": progress.start_date or now,
                "last_review_date": now,
                "next_review_date": next_review,
                "reviewed_times": reviewed_times + 1,
                "review_config": review_config,
            }
        )
        log_entry = ReviewScheduleLogEntry(
            user_id=progress.user_id,
            word_id=progress.word_id,
            review_time=now,
            schedule_days=schedule_days_between(now, next_review),
            next_review_time=next_review,
            strategy_id=strategy.id,
            review_config=log_config,
            review_log=review_log,
        )
        logger.debug(
            "Decision for user=%s word=%s: +%s d via %s",
            progress.user_id,
            progress.word_id,
            log_entry.schedule_days,
            strategy.id,
        )
        return ScheduleDecision(progress=updated, log_entry=log_entry)


__all__ = [
    "AdaptiveAlgorithm",
    "AdaptiveOutcome",
    "SchedulingEngine",
    "ladder_interval",
    "schedule_days_between",
]
