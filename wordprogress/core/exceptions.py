"""Domain errors raised by the assessment and scheduling core.

Every error carries a machine readable ``code`` and the HTTP status the API
layer should answer with. The core itself never imports FastAPI; endpoints
translate these into ``HTTPException``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False)
class WordProgressError(Exception):
    """Base class for every error surfaced by the core."""

    code: str
    status_code: int = 400
    message: str | None = None

    def __str__(self) -> str:  # pragma: no cover - human readable message
        return self.message or self.code


class InvalidTransition(WordProgressError):
    """An event was sent to a terminal stage or to a stage that cannot take it."""

    def __init__(self, stage: str, event: str):
        super().__init__(
            code="invalid_transition",
            status_code=409,
            message=f"stage '{stage}' cannot accept event '{event}'",
        )
        self.stage = stage
        self.event = event


class NotFound(WordProgressError):
    def __init__(self, what: str, **keys: object):
        details = ", ".join(f"{key}={value}" for key, value in keys.items())
        super().__init__(
            code=f"{what}_not_found",
            status_code=404,
            message=f"{what} not found ({details})" if details else f"{what} not found",
        )


class SessionExpired(WordProgressError):
    def __init__(self, session_id: str):
        super().__init__(
            code="assessment_session_expired",
            status_code=404,
            message=f"assessment session '{session_id}' is unknown or expired",
        )
        self.session_id = session_id


class StrategyConfigurationError(WordProgressError):
    """The review strategy table cannot produce a single, well formed strategy."""

    def __init__(self, message: str, code: str = "strategy_misconfigured"):
        super().__init__(code=code, status_code=500, message=message)


class NoApplicableStrategy(StrategyConfigurationError):
    def __init__(self, message: str):
        super().__init__(message, code="no_applicable_strategy")


class AmbiguousStrategy(StrategyConfigurationError):
    def __init__(self, message: str, strategy_ids: list[str]):
        super().__init__(message, code="ambiguous_strategy")
        self.strategy_ids = strategy_ids


class InvalidSchedule(WordProgressError):
    """A computed next review would precede the review it follows."""

    def __init__(self, message: str):
        super().__init__(code="invalid_schedule", status_code=500, message=message)


class PersistenceConflict(WordProgressError):
    """Another scheduling decision for the same (user, word) committed first."""

    def __init__(self, user_id: str, word_id: str):
        super().__init__(
            code="persistence_conflict",
            status_code=409,
            message=f"concurrent update detected for user={user_id} word={word_id}",
        )
        self.user_id = user_id
        self.word_id = word_id


class SinkUnavailable(WordProgressError):
    """The schedule log could not be written; the progress update was rolled back."""

    def __init__(self, message: str):
        super().__init__(code="schedule_log_unavailable", status_code=503, message=message)


__all__ = [
    "WordProgressError",
    "InvalidTransition",
    "NotFound",
    "SessionExpired",
    "StrategyConfigurationError",
    "NoApplicableStrategy",
    "AmbiguousStrategy",
    "InvalidSchedule",
    "PersistenceConflict",
    "SinkUnavailable",
]
