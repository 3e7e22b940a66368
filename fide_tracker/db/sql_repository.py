"""Implementation of the repositories using SQLAlchemy"""

from datetime import timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fide_tracker.core.models import BackupSnapshot, GameRecord
from fide_tracker.core.shared_types import Outcome, RatingCategory
from fide_tracker.db.migration import migrate_payloads, serialize_record
from fide_tracker.db.schema import RECORD_SCHEMA_VERSION, DBBackup, DBGameRecord


class SQLGameRecordRepository:
    """Game records stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def list_records(self, category: RatingCategory) -> list[GameRecord]:
        """All records of a rating category, in entry order."""
        query = (
            select(DBGameRecord)
            .where(DBGameRecord.rating_category == str(category))
            .order_by(DBGameRecord.position)
        )
        return [self._to_model(row) for row in self.db.scalars(query)]

    def get_record(self, record_id: UUID) -> GameRecord | None:
        """Get record by ID, if it exists."""
        record_db = self._fetch_record(record_id)
        if record_db:
            return self._to_model(record_db)
        return None

    def add_record(self, record: GameRecord) -> GameRecord:
        """Store new record at the end of its category's history."""
        record_db = self._to_db(record, self._next_position(record.rating_category))
        self.db.add(record_db)
        self.db.commit()
        self.db.refresh(record_db)
        return self._to_model(record_db)

    def update_record(self, record: GameRecord) -> GameRecord | None:
        """Overwrite the stored record with the same ID."""
        record_db = self._fetch_record(record.id)
        if not record_db:
            return None
        record_db.rating_category = str(record.rating_category)
        record_db.month_key = record.month_key
        record_db.player_rating = record.player_rating
        record_db.opponent_name = record.opponent_name
        record_db.opponent_rating = record.opponent_rating
        record_db.k_factor = record.k_factor
        record_db.outcome = str(record.outcome)
        record_db.rating_change = record.rating_change
        record_db.game_date = record.date
        self.db.commit()
        self.db.refresh(record_db)
        return self._to_model(record_db)

    def delete_record(self, record_id: UUID) -> GameRecord | None:
        """Remove a record."""
        record_db = self._fetch_record(record_id)
        if not record_db:
            return None
        record = self._to_model(record_db)
        self.db.delete(record_db)
        self.db.commit()
        return record

    def replace_records(
        self, category: RatingCategory, records: list[GameRecord]
    ) -> list[GameRecord]:
        """Replace the whole history of a category. The new list order becomes the entry order."""
        query = select(DBGameRecord).where(
            DBGameRecord.rating_category == str(category)
        )
        for record_db in self.db.scalars(query).all():
            self.db.delete(record_db)
        # flush the deletes first: the same IDs are re-inserted when reordering
        self.db.flush()
        self.db.add_all(
            [self._to_db(record, position) for position, record in enumerate(records)]
        )
        self.db.commit()
        return self.list_records(category)

    def _next_position(self, category: RatingCategory) -> int:
        query = select(func.max(DBGameRecord.position)).where(
            DBGameRecord.rating_category == str(category)
        )
        last = self.db.scalar(query)
        return 0 if last is None else last + 1

    def _fetch_record(self, record_id: UUID) -> DBGameRecord | None:
        query = select(DBGameRecord).where(DBGameRecord.id == record_id)
        return self.db.scalar(query)

    def _to_db(self, record: GameRecord, position: int) -> DBGameRecord:
        return DBGameRecord(
            id=record.id,
            position=position,
            rating_category=str(record.rating_category),
            month_key=record.month_key,
            player_rating=record.player_rating,
            opponent_name=record.opponent_name,
            opponent_rating=record.opponent_rating,
            k_factor=record.k_factor,
            outcome=str(record.outcome),
            rating_change=record.rating_change,
            game_date=record.date,
        )

    def _to_model(self, record_db: DBGameRecord) -> GameRecord:
        """Convert SQLAlchemy model to data transfer model."""
        return GameRecord(
            id=record_db.id,
            player_rating=record_db.player_rating,
            opponent_name=record_db.opponent_name,
            opponent_rating=record_db.opponent_rating,
            k_factor=record_db.k_factor,
            outcome=Outcome(record_db.outcome),
            rating_change=record_db.rating_change,
            rating_category=RatingCategory(record_db.rating_category),
            date=record_db.game_date,
            month_key=record_db.month_key,
        )


class SQLBackupRepository:
    """Backup snapshots stored using SQL. The snapshot's records are kept as a JSON list in the versioned record layout."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def list_backups(self, category: RatingCategory) -> list[BackupSnapshot]:
        query = (
            select(DBBackup)
            .where(DBBackup.rating_category == str(category))
            .order_by(DBBackup.created_at)
        )
        return [self._to_model(row) for row in self.db.scalars(query)]

    def get_backup(self, backup_id: UUID) -> BackupSnapshot | None:
        backup_db = self._fetch_backup(backup_id)
        if backup_db:
            return self._to_model(backup_db)
        return None

    def save_backup(self, snapshot: BackupSnapshot) -> BackupSnapshot:
        """Store a snapshot, overwriting the one with the same month label and category (keeping that row's ID)."""
        query = select(DBBackup).where(
            DBBackup.rating_category == str(snapshot.rating_category),
            DBBackup.month_label == snapshot.month_label,
        )
        backup_db = self.db.scalar(query)
        if backup_db is None:
            backup_db = DBBackup(
                id=snapshot.id,
                rating_category=str(snapshot.rating_category),
                month_label=snapshot.month_label,
            )
            self.db.add(backup_db)

        backup_db.schema_version = RECORD_SCHEMA_VERSION
        backup_db.records = [serialize_record(record) for record in snapshot.records]
        backup_db.total_change = snapshot.total_change
        backup_db.game_count = snapshot.game_count
        backup_db.created_at = snapshot.created_at
        self.db.commit()
        self.db.refresh(backup_db)
        return self._to_model(backup_db)

    def delete_backup(self, backup_id: UUID) -> BackupSnapshot | None:
        backup_db = self._fetch_backup(backup_id)
        if not backup_db:
            return None
        snapshot = self._to_model(backup_db)
        self.db.delete(backup_db)
        self.db.commit()
        return snapshot

    def _fetch_backup(self, backup_id: UUID) -> DBBackup | None:
        query = select(DBBackup).where(DBBackup.id == backup_id)
        return self.db.scalar(query)

    def _to_model(self, backup_db: DBBackup) -> BackupSnapshot:
        # SQLite drops the timezone; timestamps are always written in UTC
        created_at = backup_db.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return BackupSnapshot(
            id=backup_db.id,
            month_label=backup_db.month_label,
            rating_category=RatingCategory(backup_db.rating_category),
            records=tuple(migrate_payloads(backup_db.records)),
            created_at=created_at,
            total_change=backup_db.total_change,
            game_count=backup_db.game_count,
        )
