"""Protocol repositories (implemented with SQLAlchemy in sql_repository.py, could be a document store / on-device storage instead)"""

from typing import Protocol
from uuid import UUID

from fide_tracker.core.models import BackupSnapshot, GameRecord
from fide_tracker.core.shared_types import RatingCategory


class GameRecordRepository(Protocol):
    """Persistence of game records. Records of one category are returned in entry order."""

    def list_records(self, category: RatingCategory) -> list[GameRecord]:
        """All records of a rating category, in entry order."""
        ...

    def get_record(self, record_id: UUID) -> GameRecord | None:
        """Get record by ID, if it exists."""
        ...

    def add_record(self, record: GameRecord) -> GameRecord:
        """Store new record (appended to the end of its category's history)."""
        ...

    def update_record(self, record: GameRecord) -> GameRecord | None:
        """Overwrite the stored record with the same ID. None if it does not exist."""
        ...

    def delete_record(self, record_id: UUID) -> GameRecord | None:
        """Remove a record. Returns what was removed, None if it did not exist."""
        ...

    def replace_records(
        self, category: RatingCategory, records: list[GameRecord]
    ) -> list[GameRecord]:
        """Replace the whole history of a category (reorder / reset / restore)."""
        ...


class BackupRepository(Protocol):
    """Persistence of backup snapshots."""

    def list_backups(self, category: RatingCategory) -> list[BackupSnapshot]: ...

    def get_backup(self, backup_id: UUID) -> BackupSnapshot | None: ...

    def save_backup(self, snapshot: BackupSnapshot) -> BackupSnapshot:
        """Store a snapshot, replacing an existing one with the same month label and category."""
        ...

    def delete_backup(self, backup_id: UUID) -> BackupSnapshot | None: ...
