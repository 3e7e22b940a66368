"""Unit tests for fide_tracker/db/sql_repository.py"""

from dataclasses import replace
from datetime import date, datetime, timezone
from uuid import uuid4

from sqlalchemy.orm import Session

from fide_tracker.core.shared_types import RatingCategory
from fide_tracker.db.sql_repository import SQLBackupRepository, SQLGameRecordRepository
from fide_tracker.rating.backups import create_snapshot

NOW = datetime(2025, 8, 31, 12, 0, tzinfo=timezone.utc)


# --- GAME RECORDS ---
def test_add_record(db_session_repo: Session, record_factory) -> None:
    record = record_factory()
    repo = SQLGameRecordRepository(db_session_repo)
    stored = repo.add_record(record)
    assert stored == record


def test_get_record_by_id(db_session_repo: Session, record_factory) -> None:
    record = record_factory()
    repo = SQLGameRecordRepository(db_session_repo)
    repo.add_record(record)
    assert repo.get_record(record.id) == record


def test_get_unknown_record(db_session_repo: Session, record_factory) -> None:
    """
    Should return None if ID does not match anything in database.

    NOTE with an empty database, any id is a valid test case.
    """
    repo = SQLGameRecordRepository(db_session_repo)
    assert repo.get_record(uuid4()) is None

    repo.add_record(record_factory())
    assert repo.get_record(uuid4()) is None


def test_list_records_in_entry_order_per_category(
    db_session_repo: Session, record_factory
) -> None:
    """Entry order, not date order. Categories are separate histories."""
    late = record_factory(game_date=date(2025, 8, 28))
    early = record_factory(game_date=date(2025, 8, 2))
    blitz = record_factory(category=RatingCategory.BLITZ)

    repo = SQLGameRecordRepository(db_session_repo)
    repo.add_record(late)
    repo.add_record(blitz)
    repo.add_record(early)

    assert repo.list_records(RatingCategory.STANDARD) == [late, early]
    assert repo.list_records(RatingCategory.BLITZ) == [blitz]
    assert repo.list_records(RatingCategory.RAPID) == []


def test_update_record(db_session_repo: Session, record_factory) -> None:
    record = record_factory()
    repo = SQLGameRecordRepository(db_session_repo)
    repo.add_record(record)

    edited = replace(record, opponent_name="Magnus", date=date(2025, 8, 30))
    assert repo.update_record(edited) == edited
    assert repo.get_record(record.id) == edited


def test_update_unknown_record(db_session_repo: Session, record_factory) -> None:
    repo = SQLGameRecordRepository(db_session_repo)
    assert repo.update_record(record_factory()) is None


def test_delete_record(db_session_repo: Session, record_factory) -> None:
    """Record should no longer exist after deletion"""
    record = record_factory()
    repo = SQLGameRecordRepository(db_session_repo)
    repo.add_record(record)

    assert repo.delete_record(record.id) == record
    assert repo.get_record(record.id) is None


def test_delete_unknown_record(db_session_repo: Session) -> None:
    repo = SQLGameRecordRepository(db_session_repo)
    assert repo.delete_record(uuid4()) is None


def test_replace_records_reorders(db_session_repo: Session, record_factory) -> None:
    first, second, third = record_factory(), record_factory(), record_factory()
    repo = SQLGameRecordRepository(db_session_repo)
    for record in (first, second, third):
        repo.add_record(record)

    assert repo.replace_records(RatingCategory.STANDARD, [third, first, second]) == [
        third,
        first,
        second,
    ]
    # new games still go to the end
    fourth = record_factory()
    repo.add_record(fourth)
    assert repo.list_records(RatingCategory.STANDARD)[-1] == fourth


def test_replace_records_leaves_other_categories(
    db_session_repo: Session, record_factory
) -> None:
    standard = record_factory()
    rapid = record_factory(category=RatingCategory.RAPID)
    repo = SQLGameRecordRepository(db_session_repo)
    repo.add_record(standard)
    repo.add_record(rapid)

    assert repo.replace_records(RatingCategory.STANDARD, []) == []
    assert repo.list_records(RatingCategory.RAPID) == [rapid]


# --- BACKUPS ---
def test_save_and_get_backup(db_session_repo: Session, record_factory) -> None:
    snapshot = create_snapshot(
        [record_factory(), record_factory()], RatingCategory.STANDARD, NOW
    )
    assert snapshot is not None

    repo = SQLBackupRepository(db_session_repo)
    stored = repo.save_backup(snapshot)
    assert stored == snapshot
    assert repo.get_backup(snapshot.id) == snapshot


def test_backup_for_same_month_is_overwritten(
    db_session_repo: Session, record_factory
) -> None:
    first = create_snapshot([record_factory()], RatingCategory.STANDARD, NOW)
    second = create_snapshot(
        [record_factory(), record_factory()], RatingCategory.STANDARD, NOW
    )
    assert first is not None and second is not None

    repo = SQLBackupRepository(db_session_repo)
    repo.save_backup(first)
    repo.save_backup(second)

    (only,) = repo.list_backups(RatingCategory.STANDARD)
    assert only.month_label == "August 2025"
    assert only.game_count == 2
    assert only.records == second.records


def test_list_backups_per_category(db_session_repo: Session, record_factory) -> None:
    standard = create_snapshot([record_factory()], RatingCategory.STANDARD, NOW)
    blitz = create_snapshot(
        [record_factory(category=RatingCategory.BLITZ)], RatingCategory.BLITZ, NOW
    )
    assert standard is not None and blitz is not None

    repo = SQLBackupRepository(db_session_repo)
    repo.save_backup(standard)
    repo.save_backup(blitz)

    assert repo.list_backups(RatingCategory.BLITZ) == [blitz]
    assert repo.list_backups(RatingCategory.STANDARD) == [standard]


def test_delete_backup(db_session_repo: Session, record_factory) -> None:
    snapshot = create_snapshot([record_factory()], RatingCategory.STANDARD, NOW)
    assert snapshot is not None

    repo = SQLBackupRepository(db_session_repo)
    repo.save_backup(snapshot)
    assert repo.delete_backup(snapshot.id) == snapshot
    assert repo.get_backup(snapshot.id) is None
    assert repo.delete_backup(snapshot.id) is None
