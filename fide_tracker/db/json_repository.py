"""
Implementation of the repositories as JSON files (on-device storage, no database needed).

Older clients wrote a bare JSON list of camelCase records; those files are migrated when read and rewritten in the current layout on the next write.
Writes go through a temp file + rename so a crash never leaves a half-written history behind.
"""

import contextlib
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import UUID

from fide_tracker.core.exceptions import MigrationError
from fide_tracker.core.models import BackupSnapshot, GameRecord
from fide_tracker.core.shared_types import RatingCategory
from fide_tracker.db.migration import (
    migrate_payloads,
    parse_stored_id,
    serialize_record,
)
from fide_tracker.db.schema import RECORD_SCHEMA_VERSION
from fide_tracker.rating.aggregator import remove_record, total_change
from fide_tracker.rating.backups import upsert_snapshot

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    if not path.is_file():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise MigrationError(f"Stored data in {path} is not valid JSON: {exc}") from exc


def _write_json(path: Path, content: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp", prefix=f".{path.stem}_")
    fd_owned = True
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            fd_owned = False  # os.fdopen took ownership; it will close fd
            json.dump(content, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        Path(tmp_path).replace(path)
    except BaseException:
        if fd_owned:
            with contextlib.suppress(OSError):
                os.close(fd)
        with contextlib.suppress(OSError):
            Path(tmp_path).unlink()
        raise


class JSONGameRecordRepository:
    """All game records of all categories in one JSON file, in entry order."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def list_records(self, category: RatingCategory) -> list[GameRecord]:
        return [r for r in self._load() if r.rating_category == category]

    def get_record(self, record_id: UUID) -> GameRecord | None:
        return next((r for r in self._load() if r.id == record_id), None)

    def add_record(self, record: GameRecord) -> GameRecord:
        self._save([*self._load(), record])
        return record

    def update_record(self, record: GameRecord) -> GameRecord | None:
        records = self._load()
        if not any(r.id == record.id for r in records):
            return None
        self._save([record if r.id == record.id else r for r in records])
        return record

    def delete_record(self, record_id: UUID) -> GameRecord | None:
        records = self._load()
        existing = next((r for r in records if r.id == record_id), None)
        if existing is None:
            return None
        self._save(remove_record(records, record_id))
        return existing

    def replace_records(
        self, category: RatingCategory, records: list[GameRecord]
    ) -> list[GameRecord]:
        others = [r for r in self._load() if r.rating_category != category]
        self._save([*others, *records])
        return self.list_records(category)

    def _load(self) -> list[GameRecord]:
        content = _read_json(self.path)
        if content is None:
            return []
        if isinstance(content, list):
            # bare list: written by a client that predates versioned storage
            logger.warning("Migrating legacy record file %s", self.path)
            return migrate_payloads(content)
        return migrate_payloads(content.get("records", []))

    def _save(self, records: list[GameRecord]) -> None:
        _write_json(
            self.path,
            {
                "schema_version": RECORD_SCHEMA_VERSION,
                "records": [serialize_record(r) for r in records],
            },
        )


class JSONBackupRepository:
    """Backup snapshots in one JSON file. Also reads the older layout (month / data / createdAt keys, no category)."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def list_backups(self, category: RatingCategory) -> list[BackupSnapshot]:
        return [b for b in self._load() if b.rating_category == category]

    def get_backup(self, backup_id: UUID) -> BackupSnapshot | None:
        return next((b for b in self._load() if b.id == backup_id), None)

    def save_backup(self, snapshot: BackupSnapshot) -> BackupSnapshot:
        self._save(upsert_snapshot(self._load(), snapshot))
        return snapshot

    def delete_backup(self, backup_id: UUID) -> BackupSnapshot | None:
        backups = self._load()
        existing = next((b for b in backups if b.id == backup_id), None)
        if existing is None:
            return None
        self._save([b for b in backups if b.id != backup_id])
        return existing

    def _load(self) -> list[BackupSnapshot]:
        content = _read_json(self.path)
        if content is None:
            return []
        raw_backups = content if isinstance(content, list) else content.get("backups", [])
        return [self._to_model(raw) for raw in raw_backups]

    def _save(self, backups: list[BackupSnapshot]) -> None:
        _write_json(
            self.path,
            {
                "schema_version": RECORD_SCHEMA_VERSION,
                "backups": [self._to_payload(b) for b in backups],
            },
        )

    def _to_model(self, raw: dict[str, Any]) -> BackupSnapshot:
        records = tuple(migrate_payloads(raw.get("records", raw.get("data", []))))
        category = raw.get("rating_category") or (
            records[0].rating_category if records else RatingCategory.STANDARD
        )
        created_at = datetime.fromisoformat(
            str(raw.get("created_at", raw.get("createdAt"))).replace("Z", "+00:00")
        )
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return BackupSnapshot(
            id=parse_stored_id(raw.get("id")),
            month_label=raw.get("month_label", raw.get("month")),
            rating_category=RatingCategory(category),
            records=records,
            created_at=created_at,
            total_change=float(raw.get("total_change", raw.get("totalChange", total_change(records)))),
            game_count=int(raw.get("game_count", raw.get("gameCount", len(records)))),
        )

    def _to_payload(self, snapshot: BackupSnapshot) -> dict[str, Any]:
        return {
            "id": str(snapshot.id),
            "month_label": snapshot.month_label,
            "rating_category": str(snapshot.rating_category),
            "records": [serialize_record(r) for r in snapshot.records],
            "created_at": snapshot.created_at.isoformat(),
            "total_change": snapshot.total_change,
            "game_count": snapshot.game_count,
        }
