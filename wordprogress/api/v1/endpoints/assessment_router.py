"""Assessment sessions: start, then one answer per request until a level is reached."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from wordprogress.api.v1.dependencies import get_assessment_service
from wordprogress.core.exceptions import WordProgressError
from wordprogress.schemas.assessment_schema import AnswerIn, AssessmentStartIn, AssessmentStateOut
from wordprogress.services.assessment_service import AssessmentService

router = APIRouter()


@router.post("", response_model=AssessmentStateOut, status_code=status.HTTP_201_CREATED)
def start_assessment(
    payload: AssessmentStartIn,
    service: AssessmentService = Depends(get_assessment_service),
):
    try:
        return service.start(
            user_id=payload.user_id,
            word_id=payload.word_id,
            history=payload.history,
            phase=payload.phase,
            strategy_type=payload.strategy_type,
            enable_spelling=payload.enable_spelling,
        )
    except WordProgressError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post("/{session_id}/answers", response_model=AssessmentStateOut)
def submit_answer(
    session_id: str,
    payload: AnswerIn,
    service: AssessmentService = Depends(get_assessment_service),
):
    try:
        return service.answer(session_id, payload.answer, response_time_ms=payload.response_time_ms)
    except WordProgressError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
