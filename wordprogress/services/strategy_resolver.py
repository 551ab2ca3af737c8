"""Select the review strategy applicable to an assessed word.

``applicable_condition`` is a small predicate language so that a strategy row
can be matched exactly (no scoring, no fallback):

    level=0+long_difficult
    level=0+!long_difficult | level=1,2,4 | level=3+!long_difficult
    history>=4
    any

Alternatives are separated by ``|`` and match when every ``+`` joined clause
matches. A context matching several strategies, or none, is a configuration
defect and raises instead of guessing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence

from wordprogress.core.exceptions import (
    AmbiguousStrategy,
    NoApplicableStrategy,
    StrategyConfigurationError,
)
from wordprogress.models.enums import ProficiencyLevel, StrategyType
from wordprogress.schemas.progress_schema import ReviewStrategyOut

if TYPE_CHECKING:
    from wordprogress.crud.progress_store import ProgressStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrategyContext:
    level: ProficiencyLevel
    is_long_difficult: bool
    history_length: int


Clause = Callable[[StrategyContext], bool]

_COMPARISONS: dict[str, Callable[[int, int], bool]] = {
    "=": lambda left, right: left == right,
    ">=": lambda left, right: left >= right,
    "<=": lambda left, right: left <= right,
    ">": lambda left, right: left > right,
    "<": lambda left, right: left < right,
}

_NUMERIC_CLAUSE = re.compile(r"^(level|history)\s*(>=|<=|=|>|<)\s*([0-9]+(?:\s*,\s*[0-9]+)*)$")
_INTERVAL_PART = re.compile(r"^(\d+)\s*([mhd])$")
_UNITS = {"m": "minutes", "h": "hours", "d": "days"}


def _parse_clause(raw: str, condition: str) -> Clause:
    token = raw.strip().lower()
    if token == "any":
        return lambda ctx: True
    if token == "long_difficult":
        return lambda ctx: ctx.is_long_difficult
    if token == "!long_difficult":
        return lambda ctx: not ctx.is_long_difficult

    match = _NUMERIC_CLAUSE.match(token)
    if not match:
        raise StrategyConfigurationError(f"unknown clause '{raw.strip()}' in condition '{condition}'")

    field_name, operator, values_raw = match.groups()
    values = [int(value) for value in values_raw.split(",")]
    if len(values) > 1 and operator != "=":
        raise StrategyConfigurationError(f"value lists only work with '=' in condition '{condition}'")

    def read(ctx: StrategyContext) -> int:
        return int(ctx.level) if field_name == "level" else ctx.history_length

    if len(values) > 1:
        allowed = frozenset(values)
        return lambda ctx: read(ctx) in allowed

    compare = _COMPARISONS[operator]
    expected = values[0]
    return lambda ctx: compare(read(ctx), expected)


def parse_condition(condition: str) -> Callable[[StrategyContext], bool]:
    """Compile an ``applicable_condition`` string into a predicate."""

    if not condition or not condition.strip():
        raise StrategyConfigurationError("empty applicable_condition")

    alternatives: List[List[Clause]] = []
    for alternative in condition.split("|"):
        clauses = [part for part in alternative.split("+")]
        if any(not part.strip() for part in clauses):
            raise StrategyConfigurationError(f"dangling operator in condition '{condition}'")
        alternatives.append([_parse_clause(part, condition) for part in clauses])

    def predicate(ctx: StrategyContext) -> bool:
        return any(all(clause(ctx) for clause in clauses) for clauses in alternatives)

    return predicate


def parse_interval_rule(rule: Optional[str]) -> List[timedelta]:
    """Parse ``"1h,3h,1d"`` into an ordered list of durations.

    Unlike a lenient parser, a malformed or empty ladder raises: guessing an
    interval would silently corrupt every schedule built on the strategy.
    """

    if not rule or not rule.strip():
        raise StrategyConfigurationError("empty interval_rule")

    intervals: List[timedelta] = []
    for part in rule.split(","):
        match = _INTERVAL_PART.match(part.strip().lower())
        if not match:
            raise StrategyConfigurationError(f"invalid interval '{part.strip()}' in rule '{rule}'")
        value, unit = int(match.group(1)), match.group(2)
        if value <= 0:
            raise StrategyConfigurationError(f"interval must be positive in rule '{rule}'")
        intervals.append(timedelta(**{_UNITS[unit]: value}))
    return intervals


def match_strategies(
    strategies: Sequence[ReviewStrategyOut],
    context: StrategyContext,
) -> ReviewStrategyOut:
    """Return the single strategy whose condition holds for *context*."""

    matches = [
        strategy
        for strategy in strategies
        if parse_condition(strategy.applicable_condition)(context)
    ]

    if not matches:
        raise NoApplicableStrategy(
            f"no strategy applies to level={int(context.level)} "
            f"long_difficult={context.is_long_difficult} history={context.history_length}"
        )
    if len(matches) > 1:
        ids = sorted(strategy.id for strategy in matches)
        raise AmbiguousStrategy(
            f"strategies {', '.join(ids)} all apply to level={int(context.level)} "
            f"long_difficult={context.is_long_difficult} history={context.history_length}",
            strategy_ids=ids,
        )
    return matches[0]


class ReviewStrategyResolver:
    """Load strategies from the store and pick the one matching a context."""

    def __init__(self, store: "ProgressStore", default_strategy_type: StrategyType = StrategyType.TRADITIONAL):
        self.store = store
        self.default_strategy_type = StrategyType(default_strategy_type)

    def resolve(
        self,
        level: ProficiencyLevel,
        is_long_difficult: bool,
        history_length: int,
        strategy_type: Optional[StrategyType] = None,
    ) -> ReviewStrategyOut:
        family = StrategyType(strategy_type or self.default_strategy_type)
        candidates = self.store.list_strategies(strategy_type=family)
        context = StrategyContext(
            level=ProficiencyLevel(level),
            is_long_difficult=bool(is_long_difficult),
            history_length=max(int(history_length), 0),
        )
        strategy = match_strategies(candidates, context)

        if strategy.strategy_type is StrategyType.TRADITIONAL:
            # Validate the ladder now so a broken row fails before any scheduling.
            parse_interval_rule(strategy.interval_rule)

        logger.debug(
            "Strategy %s resolved for level=%s long_difficult=%s history=%s",
            strategy.id,
            int(context.level),
            context.is_long_difficult,
            context.history_length,
        )
        return strategy


__all__ = [
    "StrategyContext",
    "ReviewStrategyResolver",
    "match_strategies",
    "parse_condition",
    "parse_interval_rule",
]
