"""Database engine and session factory utilities.

This module builds the synchronous SQLAlchemy engine used by the progress
store. It also offers a lightweight SQLite fallback for local development
when a PostgreSQL instance is unavailable.
"""

from __future__ import annotations

import logging
import os
import time
import weakref
from time import perf_counter
from typing import Any, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from wordprogress.core.config import settings

logger = logging.getLogger(__name__)

SQLITE_FALLBACK_URL = "sqlite:///./wordprogress_local.db"


def _connection_parameters(database_url: str) -> tuple[str, dict[str, Any]]:
    """Return the URL to hand to ``create_engine`` and its ``connect_args``."""

    try:
        parsed_url: URL = make_url(database_url)
    except Exception:
        return database_url, {}

    connect_args: dict[str, Any] = {}
    if parsed_url.drivername.startswith("sqlite"):
        # Sessions are opened from FastAPI's worker threads.
        connect_args["check_same_thread"] = False

    return parsed_url.render_as_string(hide_password=False), connect_args


def _should_enable_sqlite_fallback() -> bool:
    environment = (getattr(settings, "ENVIRONMENT", "development") or "").lower()
    if os.getenv("DISABLE_SQLITE_FALLBACK") == "1":
        return False
    return environment in {"development", "local"}


# These globals are populated by ``configure_database``.
engine: Engine
SessionLocal: sessionmaker

_TIMED_ENGINES: "weakref.WeakSet[Engine]" = weakref.WeakSet()


def install_slow_query_logger(target: Engine, threshold_ms: Optional[float] = None) -> None:
    """Log a warning for every statement slower than ``threshold_ms``.

    The threshold defaults to ``SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS``; zero
    disables the hook. Installing twice on the same engine is a no-op.
    """

    if threshold_ms is None:
        threshold_ms = settings.SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS
    if not threshold_ms or threshold_ms <= 0 or target in _TIMED_ENGINES:
        return
    _TIMED_ENGINES.add(target)

    @event.listens_for(target, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_started_at", []).append(perf_counter())

    @event.listens_for(target, "after_cursor_execute")
    def _stop_timer(conn, cursor, statement, parameters, context, executemany):
        started = conn.info.get("query_started_at")
        if not started:
            return
        elapsed_ms = (perf_counter() - started.pop()) * 1000.0
        if elapsed_ms >= threshold_ms:
            logger.warning(
                "Slow query on %s (%.1f ms): %s",
                target.dialect.name,
                elapsed_ms,
                _shorten(statement),
            )


def _shorten(statement: Any, limit: int = 200) -> str:
    flat = " ".join(str(statement).split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


def _ping(target: Engine) -> None:
    with target.connect() as connection:
        connection.execute(text("SELECT 1"))


def _verify_database_connection(target: Engine) -> None:
    """Ping *target*, retrying server databases with exponential backoff."""

    if target.dialect.name == "sqlite":
        _ping(target)
        return

    attempts = max(settings.DATABASE_CONNECTION_MAX_RETRIES, 1)
    backoff = max(settings.DATABASE_CONNECTION_RETRY_BACKOFF_SECONDS, 0.1)
    for attempt in range(1, attempts + 1):
        try:
            _ping(target)
            return
        except (OperationalError, OSError) as exc:
            if attempt == attempts:
                raise
            delay = min(30.0, backoff * 2 ** (attempt - 1))
            logger.warning("Database ping %s/%s failed (%s), next try in %.1f s", attempt, attempts, exc, delay)
            time.sleep(delay)


def configure_database(database_url: str | None = None, *, allow_fallback: bool = True) -> sessionmaker:
    """Initialise the engine and session factory.

    ``database_url`` defaults to the environment configuration. When the
    connection attempt fails locally we transparently fall back to a SQLite
    database so the API can boot without a running PostgreSQL instance.
    """

    global engine, SessionLocal

    target_url = str(database_url or settings.DATABASE_URL)
    url, connect_args = _connection_parameters(target_url)

    logger.info("Connecting to database %s", make_url(url).render_as_string(hide_password=True))

    candidate_engine = create_engine(
        url,
        pool_pre_ping=True,
        connect_args=connect_args,
    )
    install_slow_query_logger(candidate_engine)

    try:
        _verify_database_connection(candidate_engine)
    except (OperationalError, OSError) as exc:
        if allow_fallback and _should_enable_sqlite_fallback():
            logger.warning(
                "Database %s unreachable (%s), falling back to SQLite",
                target_url,
                exc,
            )
            candidate_engine.dispose()
            return configure_database(SQLITE_FALLBACK_URL, allow_fallback=False)

        logger.error("Database connection failed: %s", exc)
        raise

    engine = candidate_engine
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    return SessionLocal
