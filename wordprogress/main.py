import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Imports de l'application
from wordprogress.api.v1.api import api_router
from wordprogress.core.config import settings
from wordprogress.db import session as db_session
from wordprogress.db.base import Base
from wordprogress.db.initial_data import seed_review_strategies
from wordprogress.services.container import build_services

# --- Configuration du logging ---
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# --- Initialisation de l'application FastAPI ---
app = FastAPI(
    title="Word Progress API",
    openapi_url="/api/v1/openapi.json",
)


def _sanitize_origin(origin: str | None) -> str | None:
    if not origin:
        return None
    value = origin.strip()
    if not value:
        return None
    if not value.startswith("http"):
        value = f"https://{value}"
    return value.rstrip("/")


def _build_cors_origins() -> list[str]:
    origins = sorted({o for o in (_sanitize_origin(o) for o in settings.BACKEND_CORS_ORIGINS) if o})
    logger.info("CORS origins configurés: %s", origins)
    return origins


# --- Configuration des Middlewares ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=_build_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Content-Type"],
)

app.include_router(api_router, prefix="/api/v1")


# --- Événement de Démarrage ---
@app.on_event("startup")
def startup():
    if getattr(app.state, "services", None) is not None:
        # Already wired (tests inject their own store).
        return

    session_factory = db_session.configure_database()

    logger.info("Vérification et création des tables de la base de données...")
    Base.metadata.create_all(bind=db_session.engine)
    logger.info("✅ Les tables de la base de données sont prêtes.")

    services = build_services(session_factory, settings)
    if settings.SEED_DEFAULT_STRATEGIES:
        seed_review_strategies(services.store)
    app.state.services = services


# --- Route Racine ---
@app.get("/")
def read_root():
    return {"message": "Welcome to Word Progress API!"}
