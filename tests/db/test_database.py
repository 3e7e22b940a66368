"""Unit tests for fide_tracker/db/database.py"""

import logging
from collections.abc import Generator

import pytest
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from fide_tracker.core.config import get_settings
from fide_tracker.core.logging import SQL_LOGGER
from fide_tracker.core.shared_types import RatingCategory
from fide_tracker.db.database import get_db, get_engine
from fide_tracker.db.sql_repository import SQLGameRecordRepository


@pytest.fixture
def in_memory_settings(monkeypatch) -> Generator[None, None, None]:
    """Point the cached settings / engine at an in-memory database, and undo the logging setup afterwards."""
    monkeypatch.setenv("FIDE_TRACKER_DATABASE_URL", "sqlite://")
    get_settings.cache_clear()
    get_engine.cache_clear()
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    saved_sql_level = logging.getLogger(SQL_LOGGER).level
    try:
        yield
    finally:
        get_settings.cache_clear()
        get_engine.cache_clear()
        for handler in root.handlers[:]:
            if handler not in saved_handlers:
                handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
        logging.getLogger(SQL_LOGGER).setLevel(saved_sql_level)


def test_engine_creates_tables(in_memory_settings: None) -> None:
    tables = inspect(get_engine()).get_table_names()
    assert set(tables) >= {"games", "backups"}


def test_engine_applies_logging_settings(in_memory_settings: None, monkeypatch) -> None:
    monkeypatch.setenv("FIDE_TRACKER_LOG_LEVEL", "warning")
    monkeypatch.setenv("FIDE_TRACKER_ECHO_SQL", "true")
    get_engine()
    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger(SQL_LOGGER).level == logging.INFO


def test_get_db_yields_working_session(in_memory_settings: None, record_factory) -> None:
    sessions = get_db()
    db = next(sessions)
    assert isinstance(db, Session)

    repo = SQLGameRecordRepository(db)
    record = repo.add_record(record_factory())
    assert repo.list_records(RatingCategory.STANDARD) == [record]
    sessions.close()
