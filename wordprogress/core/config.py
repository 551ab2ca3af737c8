# Fichier: wordprogress/core/config.py
from pydantic_settings import BaseSettings
from typing import List
from pydantic import ValidationError, field_validator
import sys


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./wordprogress.db"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:8081",
        "http://localhost:19006",
        "http://127.0.0.1:8081",
    ]

    # Performance instrumentation
    SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS: int = 300
    DATABASE_CONNECTION_MAX_RETRIES: int = 3
    DATABASE_CONNECTION_RETRY_BACKOFF_SECONDS: float = 1.0

    # --- Review scheduling ---
    DEFAULT_STRATEGY_TYPE: int = 1  # 1 = traditional ladder, 2 = adaptive (FSRS)
    HISTORY_PHASE: int = 3  # post-test levels feed the assessment history
    SKIP_SAME_DAY_REVIEW: bool = True
    SEED_DEFAULT_STRATEGIES: bool = True

    # --- Assessment sessions (kept in memory only) ---
    ASSESSMENT_SESSION_TTL_MINUTES: int = 60

    # --- FSRS ---
    FSRS_DESIRED_RETENTION: float = 0.9
    FSRS_MAXIMUM_INTERVAL_DAYS: int = 36500
    FSRS_MINIMUM_INTERVAL_MINUTES: int = 10

    class Config:
        env_file = ".env"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _normalize_database_url(cls, value: str) -> str:
        """Ensure Postgres URLs always use the psycopg driver.

        Managed Postgres providers still hand out ``postgres://`` URLs, an
        alias SQLAlchemy no longer ships. Bare ``postgresql://`` would pick
        psycopg2, which is not a dependency, so both are rewritten to
        ``postgresql+psycopg://``. SQLite and explicit drivers are left alone.
        """

        if not isinstance(value, str):
            return value

        replacements = {
            "postgres://": "postgresql+psycopg://",
            "postgresql://": "postgresql+psycopg://",
        }

        for prefix, target in replacements.items():
            if value.startswith(prefix):
                return target + value[len(prefix) :]

        return value

    @field_validator("DEFAULT_STRATEGY_TYPE")
    @classmethod
    def _check_strategy_type(cls, value: int) -> int:
        if value not in (1, 2):
            raise ValueError("DEFAULT_STRATEGY_TYPE must be 1 (traditional) or 2 (adaptive)")
        return value

    @field_validator("FSRS_DESIRED_RETENTION")
    @classmethod
    def _check_retention(cls, value: float) -> float:
        if not 0.0 < value < 1.0:
            raise ValueError("FSRS_DESIRED_RETENTION must be strictly between 0 and 1")
        return value


def _log_settings_validation_error(exc: ValidationError) -> None:
    """Pretty-print missing or invalid environment variables.

    The exception bubbles up during module import, which makes it hard to
    spot the offending variable, so the structured payload is written to
    stderr before the error is re-raised.
    """

    header = "Configuration error while loading environment variables:"
    print(header, file=sys.stderr)

    details = exc.errors()
    if details:
        for error in details:
            location = ".".join(str(part) for part in error.get("loc", ()))
            message = error.get("msg", "Unknown validation error")
            type_name = error.get("type")
            hint_parts = [message]
            if type_name:
                hint_parts.append(f"(type={type_name})")
            hint = " ".join(hint_parts)
            print(f"  - {location}: {hint}", file=sys.stderr)
    else:
        print(exc, file=sys.stderr)


try:
    settings = Settings()
except ValidationError as exc:  # pragma: no cover - exercised at runtime
    _log_settings_validation_error(exc)
    raise
