"""Run assessment sessions and hand resolved levels to the review scheduler."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence, Union

from sqlalchemy.exc import SQLAlchemyError

from wordprogress.core.exceptions import InvalidTransition
from wordprogress.crud.progress_store import ProgressStore
from wordprogress.models.enums import ActionType, AnswerOutcome, AssessmentPhase, ProficiencyLevel, StrategyType
from wordprogress.schemas.assessment_schema import AssessmentStateOut
from wordprogress.schemas.progress_schema import ScheduleResult, UserWordProgressState
from wordprogress.services.assessment_machine import (
    AssessmentSession,
    flow_for_phase,
    start_assessment,
    submit_answer,
)
from wordprogress.services.assessment_registry import AssessmentSessionRegistry, RegisteredSession
from wordprogress.services.history_service import HistoryService
from wordprogress.services.review_service import ReviewService
from wordprogress.utils.time_utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)


def _state_out(
    handle: str,
    session: AssessmentSession,
    schedule: Optional[ScheduleResult] = None,
) -> AssessmentStateOut:
    level = session.resolved_level
    return AssessmentStateOut(
        session_id=handle,
        stage=session.current_stage.value,
        path=[stage.value for stage in session.path],
        resolved_level=level,
        level_label=level.label if level is not None else None,
        schedule=schedule,
    )


def _is_correct(outcome: Union[AnswerOutcome, str, bool]) -> bool:
    if isinstance(outcome, bool):
        return outcome
    return AnswerOutcome(outcome) is AnswerOutcome.SUCCESS


class AssessmentService:
    def __init__(
        self,
        store: ProgressStore,
        history: HistoryService,
        reviews: ReviewService,
        registry: AssessmentSessionRegistry,
    ):
        self.store = store
        self.history = history
        self.reviews = reviews
        self.registry = registry

    def start(
        self,
        *,
        user_id: Optional[str] = None,
        word_id: Optional[str] = None,
        history: Optional[Sequence[int]] = None,
        phase: int = AssessmentPhase.POST_TEST,
        strategy_type: Optional[StrategyType] = None,
        enable_spelling: bool = False,
    ) -> AssessmentStateOut:
        """Open a session routed from ``history`` or from the stored history of the pair.

        A pair assessed for the first time gets its progress row here, at L0.
        Pre-test sessions route on the pre-test history and use the pre-test
        flow; every other phase uses the post-test flow.
        """

        phase = AssessmentPhase(phase)
        if history is None:
            if user_id and word_id:
                self.store.ensure_progress(user_id, word_id)
            history_phase = phase if phase is AssessmentPhase.PRE_TEST else None
            history = self.history.load_history(user_id, word_id, phase=history_phase)

        session = start_assessment(history, flow_for_phase(phase, enable_spelling))
        handle, _ = self.registry.add(
            session,
            user_id=user_id,
            word_id=word_id,
            phase=int(phase),
            strategy_type=StrategyType(strategy_type) if strategy_type else None,
        )
        logger.info(
            "Assessment %s started (flow=%s, route=%s, history=%s)",
            handle,
            session.flow.name,
            session.route_name,
            len(session.history_levels),
        )
        return _state_out(handle, session)

    def answer(
        self,
        handle: str,
        outcome: Union[AnswerOutcome, str, bool],
        *,
        response_time_ms: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> AssessmentStateOut:
        """Apply one answer; on a terminal level, record it and schedule the review.

        The session is released only once scheduling has committed. If it
        fails, the handle stays open and answering it again retries the
        scheduling of the level already resolved, without a new transition.
        """

        entry = self.registry.get(handle)
        with entry.lock:
            # A concurrent answer may have closed the session while we waited.
            self.registry.get(handle)
            session = entry.session

            if session.is_complete:
                logger.info("Assessment %s: retrying schedule for %s", handle, session.resolved_level.name)
                return self._finish(handle, entry, session.resolved_level, now)

            action_type = session.expected_action
            try:
                step = submit_answer(session, outcome)
            except InvalidTransition:
                self.registry.discard(handle)
                raise

            if entry.has_word_context and action_type is not None:
                self._log_action(handle, entry, action_type, _is_correct(outcome), response_time_ms)

            if not step.is_terminal:
                return _state_out(handle, session)
            return self._finish(handle, entry, step.resolved_level, now)

    def skip_word(
        self,
        user_id: str,
        word_id: str,
        *,
        session_id: Optional[str] = None,
        phase: Optional[int] = None,
    ) -> UserWordProgressState:
        """Mark a word as skipped: its progress row exists at L0 and a SKIP action is logged."""

        progress = self.store.ensure_progress(user_id, word_id)
        try:
            self.store.append_action(
                user_id,
                word_id,
                ActionType.SKIP,
                session_id=session_id,
                phase=phase,
                is_correct=False,
            )
        except SQLAlchemyError:
            logger.exception("Skip action write failed for user=%s word=%s", user_id, word_id)
        logger.info("Word skipped: user=%s word=%s", user_id, word_id)
        return progress

    def _finish(
        self,
        handle: str,
        entry: RegisteredSession,
        level: ProficiencyLevel,
        now: Optional[datetime],
    ) -> AssessmentStateOut:
        schedule = None
        if entry.has_word_context:
            schedule = self.reviews.schedule_next_review(
                entry.user_id,
                entry.word_id,
                level,
                now=ensure_utc(now) if now is not None else utcnow(),
                strategy_type=entry.strategy_type,
                record_phase=entry.phase,
            )
        self.registry.discard(handle)
        logger.info("Assessment %s resolved to %s", handle, level.name)
        return _state_out(handle, entry.session, schedule)

    def _log_action(
        self,
        handle: str,
        entry: RegisteredSession,
        action_type: ActionType,
        is_correct: bool,
        response_time_ms: Optional[int],
    ) -> None:
        try:
            self.store.append_action(
                entry.user_id,
                entry.word_id,
                action_type,
                session_id=handle,
                phase=entry.phase,
                is_correct=is_correct,
                response_time_ms=response_time_ms,
            )
        except SQLAlchemyError:
            logger.exception("Action log write failed for session %s", handle)


__all__ = ["AssessmentService"]
