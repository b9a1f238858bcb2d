"""Shared test fixtures."""

from typing import Callable, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.core.events import EventType, GameEvent, parse_condition
from src.core.game_loop import GameLoopOrchestrator
from src.core.npc.models import NPC
from src.core.player import PlayerState
from src.core.rng import RandomSource, SequenceRNG
from src.db.database import get_db
from src.db.models import Base
from src.main import app
from src.services.session_registry import SessionRegistry

DATA_DIR = "src/data"

TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(bind=TEST_ENGINE, autocommit=False, autoflush=False)
Base.metadata.create_all(TEST_ENGINE)


def _override_get_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture()
def client() -> TestClient:
    """FastAPI TestClient wired to an in-memory SQLite database and seed data."""
    Base.metadata.drop_all(TEST_ENGINE)
    Base.metadata.create_all(TEST_ENGINE)
    app.state.session_registry = SessionRegistry.from_data_dir(DATA_DIR)
    if hasattr(app.state, "save_gateway"):
        del app.state.save_gateway
    yield TestClient(app)
    app.state.session_registry = None


@pytest.fixture()
def db_session() -> Session:
    """Raw database session on a fresh schema."""
    Base.metadata.drop_all(TEST_ENGINE)
    Base.metadata.create_all(TEST_ENGINE)
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


# ── engine fixtures ──────────────────────────────────────────


@pytest.fixture()
def npcs() -> List[NPC]:
    return [
        NPC(id="grok", name="Grok", role="Warrior", relationship=55, level=2,
            stats={"str": 7, "dex": 4, "wis": 2, "cha": 3, "luck": 3}),
        NPC(id="mara", name="Mara", role="Elder", relationship=60),
        NPC(id="tarek", name="Tarek", role="Merchant"),
    ]


@pytest.fixture()
def events() -> List[GameEvent]:
    return [
        GameEvent("rain", EventType.DAILY, "Rain falls.", {"food": 5}),
        GameEvent("bumper_crop", EventType.ACTION, "Rich soil.", {"food": 6}, triggers=("farm",)),
        GameEvent("grok_story", EventType.NPC, "Grok tells a story.", {"morale": 3}, triggers=("grok",)),
        GameEvent(
            "granaries", EventType.TRIBE_MILESTONE, "Granaries overflow.",
            {"morale": 10}, condition=parse_condition("tribe.food >= 200"),
        ),
    ]


@pytest.fixture()
def make_game(npcs) -> Callable[..., GameLoopOrchestrator]:
    """Factory: an orchestrator at day 1 with no event catalog unless given.

    start_day() is not called, so no dice are consumed before the test's
    first request.
    """

    def _make(
        rng: Optional[RandomSource] = None,
        events: Optional[List[GameEvent]] = None,
        player: Optional[PlayerState] = None,
        **kwargs,
    ) -> GameLoopOrchestrator:
        return GameLoopOrchestrator(
            npcs,
            events or [],
            player=player,
            rng=rng or SequenceRNG(default=0.99),
            **kwargs,
        )

    return _make
