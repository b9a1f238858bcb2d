"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.api.game import router as game_router
from src.api.health import router as health_router
from src.config import settings
from src.core.logging import get_logger, setup_logging
from src.db.database import engine as db_engine
from src.db.models import Base
from src.services.save_gateway import get_save_gateway
from src.services.session_registry import SessionRegistry

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    logger.info(f"Loading seed data from {settings.DATA_DIR}...")
    registry = SessionRegistry.from_data_dir(
        settings.DATA_DIR,
        max_sessions=settings.MAX_SESSIONS,
        default_difficulty=settings.DEFAULT_DIFFICULTY,
    )
    app.state.session_registry = registry
    logger.info(f"Session registry ready ({len(registry.events)} events)")

    # sql saves get a gateway per request (bound to the request's db session)
    if settings.SAVE_BACKEND != "sql":
        app.state.save_gateway = get_save_gateway(backend=settings.SAVE_BACKEND)
        logger.info(f"Save backend: {app.state.save_gateway.name}")

    yield

    logger.info("Shutting down...")
    app.state.session_registry = None


app = FastAPI(title="Tribe Simulation", lifespan=lifespan)

app.include_router(health_router)
app.include_router(game_router)
