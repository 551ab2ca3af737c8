"""Closed value sets shared by models, schemas and services."""

from __future__ import annotations

import enum


class ProficiencyLevel(enum.IntEnum):
    """Mastery tier of a word for a user. Higher means better mastered."""

    L0 = 0
    L1 = 1
    L2 = 2
    L3 = 3
    L4 = 4

    @property
    def label(self) -> str:
        return _LEVEL_LABELS[self]


_LEVEL_LABELS = {
    ProficiencyLevel.L0: "unfamiliar",
    ProficiencyLevel.L1: "recognised",
    ProficiencyLevel.L2: "known",
    ProficiencyLevel.L3: "mastered",
    ProficiencyLevel.L4: "fluent",
}


class StrategyType(enum.IntEnum):
    TRADITIONAL = 1
    ADAPTIVE = 2


class ActionType(enum.IntEnum):
    LISTEN = 1
    TRANS_EN = 2
    TRANS_CH = 3
    SPELLING = 4
    PRONOUNCE = 5
    LEARN = 6
    SKIP = 7


class AssessmentPhase(enum.IntEnum):
    PRE_TEST = 1
    LEARNING = 2
    POST_TEST = 3
    QUICK_REVIEW = 4
    SPECIAL_TRAINING = 5


class AnswerOutcome(str, enum.Enum):
    SUCCESS = "success"
    FAIL = "fail"


__all__ = [
    "ProficiencyLevel",
    "StrategyType",
    "ActionType",
    "AssessmentPhase",
    "AnswerOutcome",
]
