import logging

from fastapi import HTTPException, Request, status

from wordprogress.crud.progress_store import ProgressStore
from wordprogress.services.assessment_service import AssessmentService
from wordprogress.services.container import Services
from wordprogress.services.history_service import HistoryService
from wordprogress.services.review_service import ReviewService
from wordprogress.services.strategy_resolver import ReviewStrategyResolver

log = logging.getLogger(__name__)


def get_services(request: Request) -> Services:
    """Return the services built once at startup and kept on ``app.state``."""

    services = getattr(request.app.state, "services", None)
    if services is None:
        log.error("Services requested before application startup completed")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="service_not_ready")
    return services


def get_store(request: Request) -> ProgressStore:
    return get_services(request).store


def get_history_service(request: Request) -> HistoryService:
    return get_services(request).history


def get_resolver(request: Request) -> ReviewStrategyResolver:
    return get_services(request).resolver


def get_review_service(request: Request) -> ReviewService:
    return get_services(request).reviews


def get_assessment_service(request: Request) -> AssessmentService:
    return get_services(request).assessments
