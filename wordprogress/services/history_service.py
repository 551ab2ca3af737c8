from __future__ import annotations

import logging
from typing import List, Optional

from wordprogress.core.exceptions import NotFound
from wordprogress.crud.progress_store import ProgressStore
from wordprogress.models.enums import AssessmentPhase, ProficiencyLevel

logger = logging.getLogger(__name__)


class HistoryService:
    """Read-only view over past assessment levels of a (user, word) pair."""

    def __init__(self, store: ProgressStore, phase: int = AssessmentPhase.POST_TEST):
        self.store = store
        self.phase = int(phase)

    def load_history(self, user_id: str, word_id: str, phase: Optional[int] = None) -> List[ProficiencyLevel]:
        """Levels oldest first; empty for a known pair never assessed.

        Raises ``NotFound`` when neither a progress row nor any test history
        exists for the pair.
        """

        if not self.store.pair_known(user_id, word_id):
            raise NotFound("word_history", user_id=user_id, word_id=word_id)
        return self.store.load_history_levels(user_id, word_id, phase if phase is not None else self.phase)
