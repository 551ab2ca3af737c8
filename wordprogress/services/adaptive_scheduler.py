"""FSRS based adaptive scheduling on top of ``fsrs-rs-python``.

Pure logic: no database, no request context. The persisted ``review_config``
is a plain dict so it can round-trip through a JSON column.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from fsrs_rs_python import DEFAULT_PARAMETERS, FSRS, MemoryState

from wordprogress.models.enums import ProficiencyLevel
from wordprogress.schemas.progress_schema import AdaptivePreviewOption
from wordprogress.services.scheduling_engine import AdaptiveOutcome, schedule_days_between
from wordprogress.utils.time_utils import ensure_utc, parse_instant

logger = logging.getLogger(__name__)


class Rating(enum.IntEnum):
    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


class CardState(str, enum.Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"


LEVEL_TO_RATING: Dict[ProficiencyLevel, Rating] = {
    ProficiencyLevel.L0: Rating.AGAIN,
    ProficiencyLevel.L1: Rating.HARD,
    ProficiencyLevel.L2: Rating.GOOD,
    ProficiencyLevel.L3: Rating.EASY,
    ProficiencyLevel.L4: Rating.EASY,
}

GRADUATION_THRESHOLD_DAYS = 1.0


def rating_for_level(level: ProficiencyLevel) -> Rating:
    return LEVEL_TO_RATING[ProficiencyLevel(level)]


def _next_card_state(previous: CardState, rating: Rating, interval_days: float) -> CardState:
    if interval_days >= GRADUATION_THRESHOLD_DAYS:
        return CardState.REVIEW
    if previous in (CardState.REVIEW, CardState.RELEARNING):
        return CardState.RELEARNING if rating is Rating.AGAIN or previous is CardState.RELEARNING else CardState.REVIEW
    return CardState.LEARNING


class FsrsAlgorithm:
    """``(config, level, now) -> (config', next_review_date)`` with FSRS."""

    def __init__(
        self,
        desired_retention: float = 0.9,
        maximum_interval_days: int = 36500,
        minimum_interval_minutes: int = 10,
        parameters: Optional[Sequence[float]] = None,
    ):
        self.fsrs = FSRS(parameters=list(parameters) if parameters else list(DEFAULT_PARAMETERS))
        self.desired_retention = desired_retention
        self.maximum_interval_days = float(maximum_interval_days)
        self.minimum_interval_days = minimum_interval_minutes / 1440.0

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _card_state(config: Optional[Dict[str, Any]]) -> CardState:
        if not config:
            return CardState.NEW
        try:
            return CardState(config.get("state", CardState.NEW.value))
        except ValueError:
            return CardState.NEW

    def _memory_state(self, config: Optional[Dict[str, Any]]):
        if not config:
            return None
        stability = float(config.get("stability") or 0.0)
        reps = int(config.get("reps") or 0)
        if self._card_state(config) is CardState.NEW or (stability <= 0 and reps == 0):
            return None
        difficulty = float(config.get("difficulty") or 5.0)
        return MemoryState(
            stability=max(0.1, stability),
            difficulty=max(1.0, min(10.0, difficulty)),
        )

    @staticmethod
    def _elapsed_days(config: Optional[Dict[str, Any]], now: datetime) -> int:
        last_review = parse_instant((config or {}).get("last_review"))
        if last_review is None:
            return 0
        return max(0, round((now - last_review).total_seconds() / 86400.0))

    def _clamp(self, interval_days: float) -> float:
        return max(self.minimum_interval_days, min(self.maximum_interval_days, interval_days))

    def _next_states(self, config: Optional[Dict[str, Any]], now: datetime):
        return self.fsrs.next_states(
            self._memory_state(config),
            self.desired_retention,
            self._elapsed_days(config, now),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def next_review(
        self,
        config: Optional[Dict[str, Any]],
        level: ProficiencyLevel,
        now: datetime,
    ) -> AdaptiveOutcome:
        now = ensure_utc(now)
        rating = rating_for_level(level)
        previous_state = self._card_state(config)
        elapsed_days = self._elapsed_days(config, now)

        selected = getattr(self._next_states(config, now), rating.name.lower())
        interval_days = self._clamp(float(selected.interval))
        next_review = now + timedelta(days=interval_days)
        new_state = _next_card_state(previous_state, rating, interval_days)

        lapses = int((config or {}).get("lapses") or 0)
        if rating is Rating.AGAIN and previous_state is CardState.REVIEW:
            lapses += 1

        new_config = {
            "stability": float(selected.memory.stability),
            "difficulty": float(selected.memory.difficulty),
            "reps": int((config or {}).get("reps") or 0) + 1,
            "lapses": lapses,
            "state": new_state.value,
            "last_review": now.isoformat(),
            "due": next_review.isoformat(),
            "scheduled_days": interval_days,
        }
        review_log = {
            "rating": int(rating),
            "rating_name": rating.name.title(),
            "elapsed_days": elapsed_days,
            "scheduled_days": interval_days,
            "start_state": previous_state.value,
            "end_state": new_state.value,
        }
        logger.debug(
            "FSRS %s -> %s (rating=%s, interval=%.3f d)",
            previous_state.value,
            new_state.value,
            rating.name,
            interval_days,
        )
        return AdaptiveOutcome(config=new_config, next_review_date=next_review, review_log=review_log)

    def preview(self, config: Optional[Dict[str, Any]], now: datetime) -> List[AdaptivePreviewOption]:
        """Next review for each rating, without touching the config."""

        now = ensure_utc(now)
        states = self._next_states(config, now)
        options: List[AdaptivePreviewOption] = []
        for rating in Rating:
            interval_days = self._clamp(float(getattr(states, rating.name.lower()).interval))
            next_review = now + timedelta(days=interval_days)
            options.append(
                AdaptivePreviewOption(
                    rating=int(rating),
                    name=rating.name.title(),
                    next_review_date=next_review,
                    scheduled_days=schedule_days_between(now, next_review),
                )
            )
        return options


__all__ = ["CardState", "FsrsAlgorithm", "LEVEL_TO_RATING", "Rating", "rating_for_level"]
