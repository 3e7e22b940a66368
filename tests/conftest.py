"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from collections.abc import Generator
from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from fide_tracker.core.models import GameRecord
from fide_tracker.core.shared_types import Outcome, RatingCategory
from fide_tracker.db.schema import Base
from fide_tracker.rating.engine import compute_rating_change
from fide_tracker.rating.months import month_key_for

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


def make_record(
    game_date: date = date(2025, 8, 14),
    outcome: Outcome = Outcome.WIN,
    player_rating: int = 1888,
    opponent_rating: int = 1400,
    k_factor: float = 40,
    category: RatingCategory = RatingCategory.STANDARD,
    **overrides,
) -> GameRecord:
    """A record the way the service creates it: rating change and month key derived at creation."""
    fields = dict(
        id=uuid4(),
        player_rating=player_rating,
        opponent_rating=opponent_rating,
        k_factor=k_factor,
        outcome=outcome,
        rating_change=compute_rating_change(
            player_rating, opponent_rating, outcome, k_factor
        ),
        rating_category=category,
        date=game_date,
        month_key=month_key_for(game_date),
        opponent_name="Mock McMockface",
    )
    fields.update(overrides)
    return GameRecord(**fields)


@pytest.fixture
def record_factory():
    """Build GameRecords with sensible defaults (see make_record)."""
    return make_record
