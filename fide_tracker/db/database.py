"""Generate database session"""

from collections.abc import Generator
from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from fide_tracker.core.config import get_settings
from fide_tracker.core.logging import configure_logging
from fide_tracker.db.schema import Base


@lru_cache
def get_engine() -> Engine:
    settings = get_settings()
    # SQL echo is set on the sqlalchemy.engine logger here, not via create_engine(echo=...)
    configure_logging(settings)
    engine = create_engine(settings.database_url)
    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    return engine


def get_db() -> Generator[Session, None, None]:
    db = sessionmaker(bind=get_engine())()
    try:
        yield db
    finally:
        db.close()
