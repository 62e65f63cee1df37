import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stitchup.core.config import CORS_ORIGINS, DATABASE_URL
from stitchup.core.database import Base, engine
from stitchup.core.logging_setup import configure_logging
from stitchup.core.startup_checks import apply_migrations, ensure_migrations_applied, validate_database_environment
from stitchup.middleware.observability import ObservabilityMiddleware
import stitchup.models  # models must be imported before create_all
import stitchup.services.event_handlers  # registers event bus handlers

from stitchup.routers.auth import router as auth_router
from stitchup.routers.cart import router as cart_router
from stitchup.routers.enquiries import router as enquiries_router
from stitchup.routers.live import router as live_router
from stitchup.routers.orders import router as orders_router
from stitchup.routers.tailors import router as tailors_router

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini"))
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="StitchUp API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        # Dev convenience; other environments go through alembic.
        if DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        apply_migrations(alembic_config_path=ALEMBIC_CONFIG_PATH)
        ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        raise


# Routers
app.include_router(auth_router)
app.include_router(tailors_router)
app.include_router(enquiries_router)
app.include_router(orders_router)
app.include_router(cart_router)
app.include_router(live_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
