from fastapi import APIRouter, Depends, HTTPException

from wordprogress.api.v1.dependencies import get_review_service
from wordprogress.core.exceptions import WordProgressError
from wordprogress.schemas.progress_schema import ScheduleResult, ScheduleReviewIn
from wordprogress.services.review_service import ReviewService

router = APIRouter()


@router.post("/schedule", response_model=ScheduleResult, summary="Planifier la prochaine révision")
def schedule_review(
    payload: ScheduleReviewIn,
    reviews: ReviewService = Depends(get_review_service),
):
    try:
        return reviews.schedule_next_review(
            payload.user_id,
            payload.word_id,
            payload.level,
            now=payload.review_time,
            strategy_type=payload.strategy_type,
            is_long_difficult=payload.is_long_difficult,
        )
    except WordProgressError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
