"""Pydantic shapes exchanged between the scheduling core, the store and the API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wordprogress.models.enums import ProficiencyLevel, StrategyType
from wordprogress.utils.time_utils import ensure_utc


class UserWordProgressState(BaseModel):
    """Detached snapshot of a ``user_word_progress`` row."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: Optional[int] = None
    user_id: str
    word_id: str
    is_long_difficult: bool = False
    proficiency_level: ProficiencyLevel = ProficiencyLevel.L0
    strategy_id: Optional[str] = None
    start_date: Optional[datetime] = None
    last_review_date: Optional[datetime] = None
    next_review_date: Optional[datetime] = None
    reviewed_times: Optional[int] = None
    review_config: Optional[Dict[str, Any]] = None
    version: int = 0

    @field_validator("start_date", "last_review_date", "next_review_date")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class ReviewScheduleLogEntry(BaseModel):
    """Write-once audit record of one scheduling decision."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    user_id: str
    word_id: str
    review_time: datetime
    schedule_days: int
    next_review_time: datetime
    strategy_id: str
    review_config: Optional[Dict[str, Any]] = None
    review_log: Optional[Dict[str, Any]] = None

    @field_validator("review_time", "next_review_time")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class HistoryEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    word_id: str
    test_date: date
    phase: int
    test_level: ProficiencyLevel


class ScheduleDecision(BaseModel):
    """What the scheduling engine wants persisted, atomically."""

    model_config = ConfigDict(frozen=True)

    progress: UserWordProgressState
    log_entry: ReviewScheduleLogEntry
    # Assessed level recorded alongside the schedule, when the review comes from an assessment.
    history_entry: Optional[HistoryEntryOut] = None


class ScheduleResult(BaseModel):
    progress: UserWordProgressState
    log_entry: Optional[ReviewScheduleLogEntry] = None
    skipped: bool = False


class ReviewStrategyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    strategy_type: StrategyType
    strategy_name: str
    applicable_condition: str
    interval_rule: Optional[str] = None


class RegisterWordIn(BaseModel):
    is_long_difficult: bool = False


class ScheduleReviewIn(BaseModel):
    user_id: str = Field(..., min_length=1)
    word_id: str = Field(..., min_length=1)
    level: ProficiencyLevel
    strategy_type: Optional[StrategyType] = None
    is_long_difficult: Optional[bool] = None
    review_time: Optional[datetime] = None


class DueWordsOut(BaseModel):
    user_id: str
    as_of: datetime
    word_ids: List[str] = Field(default_factory=list)


class HistoryOut(BaseModel):
    user_id: str
    word_id: str
    phase: int
    levels: List[ProficiencyLevel] = Field(default_factory=list)


class AdaptivePreviewOption(BaseModel):
    rating: int
    name: str
    next_review_date: datetime
    scheduled_days: int


class SkipWordIn(BaseModel):
    session_id: Optional[str] = None
    phase: Optional[int] = Field(default=None, ge=1, le=5)
