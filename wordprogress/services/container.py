"""Wire the store and services once per process."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import sessionmaker

from wordprogress.core.config import Settings, settings as default_settings
from wordprogress.crud.progress_store import ProgressStore
from wordprogress.models.enums import StrategyType
from wordprogress.services.adaptive_scheduler import FsrsAlgorithm
from wordprogress.services.assessment_registry import AssessmentSessionRegistry
from wordprogress.services.assessment_service import AssessmentService
from wordprogress.services.history_service import HistoryService
from wordprogress.services.review_service import ReviewService
from wordprogress.services.scheduling_engine import AdaptiveAlgorithm, SchedulingEngine
from wordprogress.services.strategy_resolver import ReviewStrategyResolver


@dataclass
class Services:
    store: ProgressStore
    history: HistoryService
    resolver: ReviewStrategyResolver
    engine: SchedulingEngine
    reviews: ReviewService
    registry: AssessmentSessionRegistry
    assessments: AssessmentService


def build_fsrs_algorithm(config: Settings) -> FsrsAlgorithm:
    return FsrsAlgorithm(
        desired_retention=config.FSRS_DESIRED_RETENTION,
        maximum_interval_days=config.FSRS_MAXIMUM_INTERVAL_DAYS,
        minimum_interval_minutes=config.FSRS_MINIMUM_INTERVAL_MINUTES,
    )


def build_services(
    session_factory: sessionmaker,
    config: Optional[Settings] = None,
    *,
    adaptive: Optional[AdaptiveAlgorithm] = None,
) -> Services:
    config = config or default_settings
    store = ProgressStore(session_factory)
    history = HistoryService(store, phase=config.HISTORY_PHASE)
    resolver = ReviewStrategyResolver(store, StrategyType(config.DEFAULT_STRATEGY_TYPE))
    engine = SchedulingEngine(adaptive if adaptive is not None else build_fsrs_algorithm(config))
    reviews = ReviewService(
        store,
        resolver,
        engine,
        history,
        skip_same_day_review=config.SKIP_SAME_DAY_REVIEW,
    )
    registry = AssessmentSessionRegistry(ttl=timedelta(minutes=config.ASSESSMENT_SESSION_TTL_MINUTES))
    assessments = AssessmentService(store, history, reviews, registry)
    return Services(
        store=store,
        history=history,
        resolver=resolver,
        engine=engine,
        reviews=reviews,
        registry=registry,
        assessments=assessments,
    )


__all__ = ["Services", "build_fsrs_algorithm", "build_services"]
