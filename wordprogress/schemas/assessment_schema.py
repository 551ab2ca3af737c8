"""Schémas Pydantic pour les sessions d'évaluation."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from wordprogress.models.enums import AnswerOutcome, AssessmentPhase, ProficiencyLevel
from wordprogress.schemas.progress_schema import ScheduleResult


class AssessmentStartIn(BaseModel):
    """Either a (user, word) pair whose history is loaded, or an explicit history."""

    user_id: Optional[str] = None
    word_id: Optional[str] = None
    history: Optional[List[ProficiencyLevel]] = None
    phase: AssessmentPhase = AssessmentPhase.POST_TEST
    strategy_type: Optional[int] = Field(default=None, ge=1, le=2)
    enable_spelling: bool = False

    @model_validator(mode="after")
    def _ensure_context(self) -> "AssessmentStartIn":
        has_pair = bool(self.user_id) and bool(self.word_id)
        if bool(self.user_id) != bool(self.word_id):
            raise ValueError("user_id and word_id must be given together")
        if not has_pair and self.history is None:
            raise ValueError("history_or_word_required")
        return self


class AnswerIn(BaseModel):
    answer: AnswerOutcome
    response_time_ms: Optional[int] = Field(default=None, ge=0)


class AssessmentStateOut(BaseModel):
    session_id: str
    stage: str
    path: List[str] = Field(default_factory=list)
    resolved_level: Optional[ProficiencyLevel] = None
    level_label: Optional[str] = None
    schedule: Optional[ScheduleResult] = None
