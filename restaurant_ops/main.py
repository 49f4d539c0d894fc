import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from restaurant_ops.core.config import CORS_ORIGINS, DATABASE_URL, ENV
from restaurant_ops.core.database import Base, engine
from restaurant_ops.core.errors import register_exception_handlers
from restaurant_ops.core.logging_setup import configure_logging
from restaurant_ops.core.startup_checks import ensure_migrations_applied, validate_database_environment
from restaurant_ops.middleware.observability import ObservabilityMiddleware
import restaurant_ops.models  # garante que os models são importados antes do create_all

from restaurant_ops.routers.businesses import router as businesses_router
from restaurant_ops.routers.delivery import router as delivery_router
from restaurant_ops.routers.webhook import router as webhook_router
from restaurant_ops.routers.whatsapp import router as whatsapp_router

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
    title="Restaurant Ops API",
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
register_exception_handlers(app)


def _startup_tasks() -> None:
    try:
        logger.info("%s env=%s", STARTUP_PREFIX, ENV)
        validate_database_environment()
        # Cria tabelas (dev). Em produção, use migrations.
        if DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        raise


# Routers
app.include_router(webhook_router)
app.include_router(delivery_router)
app.include_router(whatsapp_router)
app.include_router(businesses_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "ok", "env": ENV}
