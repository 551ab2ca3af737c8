from fastapi import APIRouter

from .endpoints import (
    assessment_router,
    progress_router,
    review_router,
    strategy_router,
)

api_router = APIRouter()

api_router.include_router(progress_router.router, prefix="/progress", tags=["Progress"])
api_router.include_router(assessment_router.router, prefix="/assessments", tags=["Assessments"])
api_router.include_router(review_router.router, prefix="/reviews", tags=["Reviews"])
api_router.include_router(strategy_router.router, prefix="/strategies", tags=["Strategies"])
