"""Orchestrate one scheduling decision: load, resolve, compute, commit."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from wordprogress.core.exceptions import PersistenceConflict, StrategyConfigurationError
from wordprogress.crud.progress_store import ProgressStore
from wordprogress.models.enums import ProficiencyLevel, StrategyType
from wordprogress.schemas.progress_schema import (
    AdaptivePreviewOption,
    HistoryEntryOut,
    ScheduleResult,
    UserWordProgressState,
)
from wordprogress.services.history_service import HistoryService
from wordprogress.services.scheduling_engine import SchedulingEngine
from wordprogress.services.strategy_resolver import ReviewStrategyResolver
from wordprogress.utils.time_utils import ensure_utc, same_utc_day, utcnow

logger = logging.getLogger(__name__)


class ReviewService:
    """Turn an assessed level into a committed review schedule."""

    MAX_ATTEMPTS = 2

    def __init__(
        self,
        store: ProgressStore,
        resolver: ReviewStrategyResolver,
        engine: SchedulingEngine,
        history: HistoryService,
        *,
        skip_same_day_review: bool = True,
    ):
        self.store = store
        self.resolver = resolver
        self.engine = engine
        self.history = history
        self.skip_same_day_review = skip_same_day_review

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def schedule_next_review(
        self,
        user_id: str,
        word_id: str,
        level: ProficiencyLevel,
        now: Optional[datetime] = None,
        strategy_type: Optional[StrategyType] = None,
        is_long_difficult: Optional[bool] = None,
        record_phase: Optional[int] = None,
    ) -> ScheduleResult:
        """Schedule the next review of ``word_id`` for ``user_id``.

        Every attempt starts from a freshly loaded progress row, so a retry
        after ``PersistenceConflict`` recomputes from the winner's state. One
        retry is made; a second conflict is surfaced to the caller.

        With ``record_phase`` the level is also written to the test history
        for that phase, in the same transaction as the schedule. Strategy
        resolution then counts it as part of the history.
        """

        now = ensure_utc(now) if now is not None else utcnow()
        level = ProficiencyLevel(level)
        history_entry = None
        if record_phase is not None:
            history_entry = HistoryEntryOut(
                user_id=user_id,
                word_id=word_id,
                test_date=now.date(),
                phase=int(record_phase),
                test_level=level,
            )

        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            progress = self._load_progress(user_id, word_id, is_long_difficult)

            if self.skip_same_day_review and self._already_scheduled(progress, now):
                logger.info(
                    "Review already scheduled today for user=%s word=%s, skipping",
                    user_id,
                    word_id,
                )
                if history_entry is not None:
                    self.store.record_test_result(
                        user_id,
                        word_id,
                        level,
                        phase=history_entry.phase,
                        test_date=history_entry.test_date,
                    )
                return ScheduleResult(progress=progress, skipped=True)

            strategy = self.resolver.resolve(
                level,
                progress.is_long_difficult,
                self._history_length(user_id, word_id, history_entry),
                strategy_type=strategy_type,
            )
            decision = self.engine.schedule(progress, level, strategy, now)
            if history_entry is not None:
                decision = decision.model_copy(update={"history_entry": history_entry})

            try:
                stored = self.store.commit_schedule(decision, expected_version=progress.version)
            except PersistenceConflict:
                if attempt >= self.MAX_ATTEMPTS:
                    logger.warning(
                        "Scheduling conflict persisted for user=%s word=%s after %s attempts",
                        user_id,
                        word_id,
                        attempt,
                    )
                    raise
                logger.warning(
                    "Scheduling conflict for user=%s word=%s, reloading and retrying",
                    user_id,
                    word_id,
                )
                continue

            logger.info(
                "Next review for user=%s word=%s: %s via %s (level=%s)",
                user_id,
                word_id,
                stored.next_review_date.isoformat() if stored.next_review_date else None,
                strategy.id,
                int(level),
            )
            return ScheduleResult(progress=stored, log_entry=decision.log_entry)

        raise AssertionError("unreachable")  # pragma: no cover

    def list_due_word_ids(self, user_id: str, as_of: Optional[datetime] = None, limit: int = 100) -> List[str]:
        return self.store.list_due_word_ids(user_id, ensure_utc(as_of) if as_of else utcnow(), limit=limit)

    def preview_adaptive(
        self,
        user_id: str,
        word_id: str,
        now: Optional[datetime] = None,
    ) -> List[AdaptivePreviewOption]:
        preview = getattr(self.engine.adaptive, "preview", None)
        if preview is None:
            raise StrategyConfigurationError("the configured adaptive algorithm cannot preview")
        progress = self.store.require_progress(user_id, word_id)
        return preview(progress.review_config, ensure_utc(now) if now else utcnow())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _already_scheduled(progress: UserWordProgressState, now: datetime) -> bool:
        """A second review on the same UTC day, before the word is due again."""

        return (
            same_utc_day(progress.last_review_date, now)
            and progress.next_review_date is not None
            and now < progress.next_review_date
        )

    def _history_length(self, user_id: str, word_id: str, pending: Optional[HistoryEntryOut]) -> int:
        length = len(self.history.load_history(user_id, word_id))
        if (
            pending is not None
            and pending.phase == self.history.phase
            and not self.store.has_test_result(user_id, word_id, pending.phase, pending.test_date)
        ):
            length += 1
        return length

    def _load_progress(
        self,
        user_id: str,
        word_id: str,
        is_long_difficult: Optional[bool],
    ) -> UserWordProgressState:
        progress = self.store.get_progress(user_id, word_id)
        if progress is None or (
            is_long_difficult is not None and progress.is_long_difficult != is_long_difficult
        ):
            progress = self.store.register_word(
                user_id,
                word_id,
                bool(is_long_difficult) if is_long_difficult is not None else False,
            )
        return progress


__all__ = ["ReviewService"]
