import logging

from wordprogress.crud.progress_store import ProgressStore
from wordprogress.models.enums import StrategyType

logger = logging.getLogger(__name__)

# The three traditional conditions partition every (level, long_difficult)
# context, so traditional resolution is never ambiguous nor empty.
DEFAULT_STRATEGIES = [
    {
        "id": "strategy_dense",
        "strategy_type": StrategyType.TRADITIONAL,
        "strategy_name": "Dense review",
        "applicable_condition": "level=0+long_difficult",
        "interval_rule": "1h,6h,1d,2d,4d,7d,15d",
    },
    {
        "id": "strategy_normal",
        "strategy_type": StrategyType.TRADITIONAL,
        "strategy_name": "Normal review",
        "applicable_condition": "level=0+!long_difficult | level=1,2,4 | level=3+!long_difficult",
        "interval_rule": "12h,1d,2d,4d,7d,15d,30d",
    },
    {
        "id": "strategy_sparse",
        "strategy_type": StrategyType.TRADITIONAL,
        "strategy_name": "Sparse review",
        "applicable_condition": "level=3+long_difficult",
        "interval_rule": "1d,3d,7d,15d,30d,60d",
    },
    {
        "id": "strategy_fsrs",
        "strategy_type": StrategyType.ADAPTIVE,
        "strategy_name": "FSRS adaptive review",
        "applicable_condition": "any",
        "interval_rule": None,
    },
]


def seed_review_strategies(store: ProgressStore) -> None:
    """
    Injecte les stratégies de révision par défaut si elles sont absentes.
    """
    created = store.seed_strategies(DEFAULT_STRATEGIES)
    if created:
        logger.info("✅ %s stratégies de révision ont été ajoutées.", created)
    else:
        logger.info("Stratégies de révision déjà présentes. Seeding ignoré.")
