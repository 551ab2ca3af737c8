from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from wordprogress.api.v1.dependencies import (
    get_assessment_service,
    get_history_service,
    get_review_service,
    get_store,
)
from wordprogress.core.exceptions import WordProgressError
from wordprogress.crud.progress_store import ProgressStore
from wordprogress.schemas.progress_schema import (
    DueWordsOut,
    HistoryOut,
    RegisterWordIn,
    SkipWordIn,
    UserWordProgressState,
)
from wordprogress.services.assessment_service import AssessmentService
from wordprogress.services.history_service import HistoryService
from wordprogress.services.review_service import ReviewService
from wordprogress.utils.time_utils import ensure_utc, utcnow

router = APIRouter()


# Declared before "/{user_id}/{word_id}" so "due" is never taken for a word id.
@router.get("/{user_id}/due", response_model=DueWordsOut, summary="Mots à réviser")
def list_due_words(
    user_id: str,
    as_of: Optional[datetime] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    reviews: ReviewService = Depends(get_review_service),
):
    instant = ensure_utc(as_of) if as_of else utcnow()
    word_ids = reviews.list_due_word_ids(user_id, instant, limit=limit)
    return DueWordsOut(user_id=user_id, as_of=instant, word_ids=word_ids)


@router.put("/{user_id}/{word_id}", response_model=UserWordProgressState)
def register_word(
    user_id: str,
    word_id: str,
    payload: RegisterWordIn,
    store: ProgressStore = Depends(get_store),
):
    return store.register_word(user_id, word_id, payload.is_long_difficult)


@router.get("/{user_id}/{word_id}", response_model=UserWordProgressState)
def get_progress(
    user_id: str,
    word_id: str,
    store: ProgressStore = Depends(get_store),
):
    try:
        return store.require_progress(user_id, word_id)
    except WordProgressError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/{user_id}/{word_id}/history", response_model=HistoryOut)
def get_history(
    user_id: str,
    word_id: str,
    phase: Optional[int] = Query(default=None, ge=1, le=5),
    history: HistoryService = Depends(get_history_service),
):
    try:
        levels = history.load_history(user_id, word_id, phase=phase)
    except WordProgressError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    return HistoryOut(
        user_id=user_id,
        word_id=word_id,
        phase=phase if phase is not None else history.phase,
        levels=levels,
    )


@router.post("/{user_id}/{word_id}/skip", response_model=UserWordProgressState, summary="Passer un mot")
def skip_word(
    user_id: str,
    word_id: str,
    payload: SkipWordIn,
    assessments: AssessmentService = Depends(get_assessment_service),
):
    return assessments.skip_word(user_id, word_id, session_id=payload.session_id, phase=payload.phase)
