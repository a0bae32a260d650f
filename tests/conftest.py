"""Shared pytest fixtures for the squares wagering API tests."""
import os
import sys
from pathlib import Path
from typing import Generator

# Settings are read at import time: point them at a throwaway database and
# switch rate limiting off before anything imports app.*
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create fresh test database session with isolated in-memory database."""
    from app.core.database import init_db

    # One connection shared by every checkout, so the TestClient's worker
    # thread sees the same in-memory database as the test body
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    init_db(bind=engine)

    TestSessionLocal = sessionmaker(bind=engine)
    session = TestSessionLocal()

    yield session

    session.close()
    engine.dispose()


# =============================================================================
# DOMAIN FIXTURES
# =============================================================================

@pytest.fixture
def game_service(db_session):
    from app.services.game_service import GameService
    return GameService(db_session)


@pytest.fixture
def bet_service(db_session):
    from app.services.bet_service import BetService
    return BetService(db_session)


@pytest.fixture
def sample_game(game_service):
    """A $1/square game with the default prize split and payout caps."""
    return game_service.create_game(name="Super Bowl LX", bet_amount=1)


@pytest.fixture
def sample_players(game_service, sample_game):
    """Two players: Alice Brown (AB) and Carl Diaz (CD)."""
    return [
        game_service.add_player(sample_game.id, "Alice", "Brown"),
        game_service.add_player(sample_game.id, "Carl", "Diaz"),
    ]


def make_straight_request(odds=-110, wager=10, market="h2h", outcome="Chiefs", point=None, description=None):
    from app.services.bet_service import BetRequest
    from app.services.betting.pricing import Selection

    return BetRequest(
        bet_type="straight",
        wager=wager,
        selection=Selection(market=market, outcome=outcome, odds=odds, point=point),
        description=description,
    )


def make_parlay_request(odds_list, wager=5):
    from app.services.bet_service import BetRequest
    from app.services.betting.pricing import LegSpec

    return BetRequest(
        bet_type="parlay",
        wager=wager,
        legs=[
            LegSpec(market="h2h", outcome=f"Team {i}", odds=odds, description=f"Leg {i}")
            for i, odds in enumerate(odds_list)
        ],
    )


@pytest.fixture
def straight_request():
    return make_straight_request


@pytest.fixture
def parlay_request():
    return make_parlay_request


# =============================================================================
# FASTAPI TEST CLIENT FIXTURE
# =============================================================================

@pytest.fixture(scope="function")
def test_client(db_session):
    """
    Create FastAPI TestClient with a fresh database for each test.

    Note: We don't use context manager (with TestClient) because it conflicts
    with Prometheus middleware that's added during app module initialization.
    The lifespan (and its init_db) therefore never runs; tables come from
    the db_session fixture.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/v1/games")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from app.main import app
    from app.core.database import get_db

    test_db_session = db_session

    def override_get_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    # Create client without context manager to avoid middleware conflict
    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
