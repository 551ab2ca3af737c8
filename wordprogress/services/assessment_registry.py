"""In-memory handles for assessment sessions that are still waiting for answers."""

from __future__ import annotations

import logging
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from wordprogress.core.exceptions import SessionExpired
from wordprogress.models.enums import AssessmentPhase, StrategyType
from wordprogress.services.assessment_machine import AssessmentSession
from wordprogress.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class RegisteredSession:
    session: AssessmentSession
    expires_at: datetime
    user_id: Optional[str] = None
    word_id: Optional[str] = None
    phase: int = AssessmentPhase.POST_TEST
    strategy_type: Optional[StrategyType] = None
    # Serialises answers submitted on the same handle.
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def has_word_context(self) -> bool:
        return bool(self.user_id) and bool(self.word_id)


class AssessmentSessionRegistry:
    def __init__(self, ttl: timedelta = timedelta(minutes=60), clock: Callable[[], datetime] = utcnow):
        self.ttl = ttl
        self._clock = clock
        self._sessions: Dict[str, RegisteredSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def add(self, session: AssessmentSession, **context) -> tuple[str, RegisteredSession]:
        handle = secrets.token_urlsafe(16)
        entry = RegisteredSession(session=session, expires_at=self._clock() + self.ttl, **context)
        with self._lock:
            self._purge_expired()
            self._sessions[handle] = entry
        return handle, entry

    def get(self, handle: str) -> RegisteredSession:
        with self._lock:
            entry = self._sessions.get(handle)
            if entry is None:
                raise SessionExpired(handle)
            if entry.expires_at <= self._clock():
                del self._sessions[handle]
                logger.info("Assessment session %s expired", handle)
                raise SessionExpired(handle)
            return entry

    def discard(self, handle: str) -> None:
        with self._lock:
            self._sessions.pop(handle, None)

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [handle for handle, entry in self._sessions.items() if entry.expires_at <= now]
        for handle in expired:
            del self._sessions[handle]
        if expired:
            logger.debug("%s expired assessment sessions purged", len(expired))


__all__ = ["AssessmentSessionRegistry", "RegisteredSession"]
