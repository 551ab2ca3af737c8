"""Persistence adapter for progress rows, strategies, history and logs.

``ProgressStore`` is built once with a session factory and shared by
reference. Each call opens its own short-lived session; nothing ORM-bound
escapes, callers only ever see detached pydantic snapshots.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from wordprogress.core.exceptions import NotFound, PersistenceConflict, SinkUnavailable
from wordprogress.models.enums import ActionType, AssessmentPhase, ProficiencyLevel, StrategyType
from wordprogress.models.progress import (
    ReviewScheduleLog,
    UserWordActionLog,
    UserWordProgress,
    UserWordTestHistory,
)
from wordprogress.models.strategy import ReviewStrategy
from wordprogress.schemas.progress_schema import (
    HistoryEntryOut,
    ReviewScheduleLogEntry,
    ReviewStrategyOut,
    ScheduleDecision,
    UserWordProgressState,
)
from wordprogress.utils.time_utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)

_PROGRESS_FIELDS = (
    "proficiency_level",
    "strategy_id",
    "start_date",
    "last_review_date",
    "next_review_date",
    "reviewed_times",
    "review_config",
)


class ProgressStore:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------
    def list_strategies(self, strategy_type: Optional[StrategyType] = None) -> List[ReviewStrategyOut]:
        with self.session_factory() as db:
            query = db.query(ReviewStrategy)
            if strategy_type is not None:
                query = query.filter(ReviewStrategy.strategy_type == int(strategy_type))
            rows = query.order_by(ReviewStrategy.id.asc()).all()
            return [ReviewStrategyOut.model_validate(row) for row in rows]

    def get_strategy(self, strategy_id: str) -> ReviewStrategyOut:
        with self.session_factory() as db:
            row = db.get(ReviewStrategy, strategy_id)
            if row is None:
                raise NotFound("strategy", strategy_id=strategy_id)
            return ReviewStrategyOut.model_validate(row)

    def seed_strategies(self, definitions: Iterable[Mapping[str, Any]]) -> int:
        """Insert the strategies that do not exist yet; existing rows are left alone."""

        created = 0
        with self.session_factory.begin() as db:
            for definition in definitions:
                if db.get(ReviewStrategy, definition["id"]) is not None:
                    continue
                db.add(
                    ReviewStrategy(
                        id=definition["id"],
                        strategy_type=int(definition["strategy_type"]),
                        strategy_name=definition["strategy_name"],
                        applicable_condition=definition["applicable_condition"],
                        interval_rule=definition.get("interval_rule"),
                    )
                )
                created += 1
        if created:
            logger.info("%s review strategies seeded", created)
        return created

    # ------------------------------------------------------------------
    # Progress rows
    # ------------------------------------------------------------------
    @staticmethod
    def _find_progress(db: Session, user_id: str, word_id: str) -> Optional[UserWordProgress]:
        return (
            db.query(UserWordProgress)
            .filter(
                UserWordProgress.user_id == user_id,
                UserWordProgress.word_id == word_id,
            )
            .first()
        )

    def get_progress(self, user_id: str, word_id: str) -> Optional[UserWordProgressState]:
        with self.session_factory() as db:
            row = self._find_progress(db, user_id, word_id)
            return UserWordProgressState.model_validate(row) if row is not None else None

    def require_progress(self, user_id: str, word_id: str) -> UserWordProgressState:
        progress = self.get_progress(user_id, word_id)
        if progress is None:
            raise NotFound("progress", user_id=user_id, word_id=word_id)
        return progress

    def register_word(self, user_id: str, word_id: str, is_long_difficult: bool = False) -> UserWordProgressState:
        """Create the progress row at L0, or update the difficulty flag."""

        try:
            with self.session_factory.begin() as db:
                row = self._find_progress(db, user_id, word_id)
                if row is None:
                    row = UserWordProgress(
                        user_id=user_id,
                        word_id=word_id,
                        is_long_difficult=bool(is_long_difficult),
                        proficiency_level=int(ProficiencyLevel.L0),
                        version=0,
                    )
                    db.add(row)
                elif row.is_long_difficult != bool(is_long_difficult):
                    row.is_long_difficult = bool(is_long_difficult)
                db.flush()
                return UserWordProgressState.model_validate(row)
        except IntegrityError:
            # Lost the insert race; the other writer's row is the one to use.
            logger.info("Progress row for user=%s word=%s created concurrently", user_id, word_id)
            return self.require_progress(user_id, word_id)

    def ensure_progress(
        self,
        user_id: str,
        word_id: str,
        is_long_difficult: Optional[bool] = None,
    ) -> UserWordProgressState:
        progress = self.get_progress(user_id, word_id)
        if progress is not None:
            return progress
        return self.register_word(user_id, word_id, bool(is_long_difficult))

    def list_due_word_ids(self, user_id: str, as_of: datetime, limit: int = 100) -> List[str]:
        with self.session_factory() as db:
            rows = (
                db.query(UserWordProgress.word_id)
                .filter(
                    UserWordProgress.user_id == user_id,
                    UserWordProgress.next_review_date.is_not(None),
                    UserWordProgress.next_review_date <= ensure_utc(as_of),
                )
                .order_by(UserWordProgress.next_review_date.asc(), UserWordProgress.id.asc())
                .limit(limit)
                .all()
            )
            return [word_id for (word_id,) in rows]

    def commit_schedule(self, decision: ScheduleDecision, expected_version: int) -> UserWordProgressState:
        """Apply a scheduling decision, its log entry and the optional assessed
        level in one transaction.

        The progress update is a compare-and-swap on ``version``; if another
        writer got there first ``PersistenceConflict`` is raised. If the log
        insert fails the whole transaction is rolled back and
        ``SinkUnavailable`` is raised.
        """

        progress = decision.progress
        values = {name: getattr(progress, name) for name in _PROGRESS_FIELDS}
        values["proficiency_level"] = int(progress.proficiency_level)

        with self.session_factory.begin() as db:
            if progress.id is None:
                row = UserWordProgress(
                    user_id=progress.user_id,
                    word_id=progress.word_id,
                    is_long_difficult=progress.is_long_difficult,
                    version=expected_version + 1,
                    **values,
                )
                db.add(row)
                try:
                    db.flush()
                except IntegrityError as exc:
                    raise PersistenceConflict(progress.user_id, progress.word_id) from exc
                row_id = row.id
            else:
                result = db.execute(
                    update(UserWordProgress)
                    .where(
                        UserWordProgress.id == progress.id,
                        UserWordProgress.version == expected_version,
                    )
                    .values(version=expected_version + 1, **values)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    raise PersistenceConflict(progress.user_id, progress.word_id)
                row_id = progress.id

            if decision.history_entry is not None:
                self._upsert_history(db, decision.history_entry)

            try:
                db.add(ReviewScheduleLog(**decision.log_entry.model_dump()))
                db.flush()
            except SQLAlchemyError as exc:
                logger.exception(
                    "Écriture du journal de révision impossible pour user=%s word=%s",
                    progress.user_id,
                    progress.word_id,
                )
                raise SinkUnavailable(f"review_schedule_log insert failed: {exc}") from exc

            stored = db.get(UserWordProgress, row_id, populate_existing=True)
            return UserWordProgressState.model_validate(stored)

    def list_schedule_logs(self, user_id: str, word_id: str) -> List[ReviewScheduleLogEntry]:
        with self.session_factory() as db:
            rows = (
                db.query(ReviewScheduleLog)
                .filter(
                    ReviewScheduleLog.user_id == user_id,
                    ReviewScheduleLog.word_id == word_id,
                )
                .order_by(ReviewScheduleLog.review_time.asc(), ReviewScheduleLog.id.asc())
                .all()
            )
            return [ReviewScheduleLogEntry.model_validate(row) for row in rows]

    # ------------------------------------------------------------------
    # Test history
    # ------------------------------------------------------------------
    def load_history_levels(self, user_id: str, word_id: str, phase: int) -> List[ProficiencyLevel]:
        with self.session_factory() as db:
            rows = (
                db.query(UserWordTestHistory.test_level)
                .filter(
                    UserWordTestHistory.user_id == user_id,
                    UserWordTestHistory.word_id == word_id,
                    UserWordTestHistory.phase == int(phase),
                )
                .order_by(UserWordTestHistory.test_date.asc(), UserWordTestHistory.id.asc())
                .all()
            )
            return [ProficiencyLevel(level) for (level,) in rows]

    def pair_known(self, user_id: str, word_id: str) -> bool:
        with self.session_factory() as db:
            if self._find_progress(db, user_id, word_id) is not None:
                return True
            history = (
                db.query(UserWordTestHistory.id)
                .filter(
                    UserWordTestHistory.user_id == user_id,
                    UserWordTestHistory.word_id == word_id,
                )
                .first()
            )
            return history is not None

    def record_test_result(
        self,
        user_id: str,
        word_id: str,
        level: ProficiencyLevel,
        phase: int = AssessmentPhase.POST_TEST,
        test_date: Optional[date] = None,
    ) -> HistoryEntryOut:
        """Upsert the level reached on ``test_date`` for ``phase``."""

        entry = HistoryEntryOut(
            user_id=user_id,
            word_id=word_id,
            test_date=test_date or utcnow().date(),
            phase=int(phase),
            test_level=level,
        )
        with self.session_factory.begin() as db:
            return self._upsert_history(db, entry)

    def has_test_result(self, user_id: str, word_id: str, phase: int, test_date: date) -> bool:
        with self.session_factory() as db:
            return self._find_history(db, user_id, word_id, phase, test_date) is not None

    @staticmethod
    def _find_history(
        db: Session, user_id: str, word_id: str, phase: int, test_date: date
    ) -> Optional[UserWordTestHistory]:
        return (
            db.query(UserWordTestHistory)
            .filter(
                UserWordTestHistory.user_id == user_id,
                UserWordTestHistory.word_id == word_id,
                UserWordTestHistory.phase == int(phase),
                UserWordTestHistory.test_date == test_date,
            )
            .first()
        )

    def _upsert_history(self, db: Session, entry: HistoryEntryOut) -> HistoryEntryOut:
        row = self._find_history(db, entry.user_id, entry.word_id, entry.phase, entry.test_date)
        if row is None:
            row = UserWordTestHistory(
                user_id=entry.user_id,
                word_id=entry.word_id,
                phase=entry.phase,
                test_date=entry.test_date,
                test_level=int(entry.test_level),
            )
            db.add(row)
        else:
            row.test_level = int(entry.test_level)
        db.flush()
        return HistoryEntryOut.model_validate(row)

    # ------------------------------------------------------------------
    # Action log
    # ------------------------------------------------------------------
    def append_action(
        self,
        user_id: str,
        word_id: str,
        action_type: ActionType,
        *,
        session_id: Optional[str] = None,
        phase: Optional[int] = None,
        is_correct: Optional[bool] = None,
        response_time_ms: Optional[int] = None,
        study_duration_ms: Optional[int] = None,
    ) -> int:
        with self.session_factory.begin() as db:
            row = UserWordActionLog(
                user_id=user_id,
                word_id=word_id,
                session_id=session_id,
                phase=int(phase) if phase is not None else None,
                action_type=int(action_type),
                is_correct=is_correct,
                response_time_ms=response_time_ms,
                study_duration_ms=study_duration_ms,
                speed_used=100,
            )
            db.add(row)
            db.flush()
            return row.id

    def count_actions(self, user_id: str, word_id: str) -> int:
        with self.session_factory() as db:
            return (
                db.query(UserWordActionLog)
                .filter(
                    UserWordActionLog.user_id == user_id,
                    UserWordActionLog.word_id == word_id,
                )
                .count()
            )


__all__ = ["ProgressStore"]
