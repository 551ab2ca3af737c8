from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from wordprogress.api.v1.dependencies import get_resolver, get_review_service, get_store
from wordprogress.core.exceptions import WordProgressError
from wordprogress.crud.progress_store import ProgressStore
from wordprogress.models.enums import ProficiencyLevel, StrategyType
from wordprogress.schemas.progress_schema import AdaptivePreviewOption, ReviewStrategyOut
from wordprogress.services.review_service import ReviewService
from wordprogress.services.strategy_resolver import ReviewStrategyResolver

router = APIRouter()


@router.get("", response_model=List[ReviewStrategyOut])
def list_strategies(
    strategy_type: Optional[StrategyType] = Query(default=None),
    store: ProgressStore = Depends(get_store),
):
    return store.list_strategies(strategy_type=strategy_type)


@router.get("/resolve", response_model=ReviewStrategyOut)
def resolve_strategy(
    level: ProficiencyLevel,
    is_long_difficult: bool = False,
    history_length: int = Query(default=0, ge=0),
    strategy_type: Optional[StrategyType] = Query(default=None),
    resolver: ReviewStrategyResolver = Depends(get_resolver),
):
    try:
        return resolver.resolve(level, is_long_difficult, history_length, strategy_type=strategy_type)
    except WordProgressError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/adaptive/preview/{user_id}/{word_id}", response_model=List[AdaptivePreviewOption])
def preview_adaptive(
    user_id: str,
    word_id: str,
    reviews: ReviewService = Depends(get_review_service),
):
    try:
        return reviews.preview_adaptive(user_id, word_id)
    except WordProgressError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
