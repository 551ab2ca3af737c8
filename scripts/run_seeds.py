# Fichier: scripts/run_seeds.py

import logging
import sys
from pathlib import Path

# --- Configuration du chemin et des imports ---
sys.path.append(str(Path(__file__).resolve().parents[1]))
from wordprogress.db import session as db_session
from wordprogress.db.base import Base  # noqa: F401 - Crucial pour charger tous les modèles
from wordprogress.crud.progress_store import ProgressStore
from wordprogress.db.initial_data import seed_review_strategies

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main() -> None:
    session_factory = db_session.configure_database(allow_fallback=False)

    logger.info("--- Phase 1: Création des tables ---")
    Base.metadata.create_all(bind=db_session.engine)

    logger.info("--- Phase 2: Stratégies de révision ---")
    seed_review_strategies(ProgressStore(session_factory))

    logger.info("✅ Seeding terminé.")


if __name__ == "__main__":
    main()
