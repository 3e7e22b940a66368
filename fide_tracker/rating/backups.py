"""Backup snapshots of a game history (taken on demand, e.g. right before a reset)."""

from collections import Counter
from collections.abc import Sequence
from datetime import datetime

from fide_tracker.core.models import BackupSnapshot, GameRecord
from fide_tracker.core.shared_types import RatingCategory
from fide_tracker.rating.aggregator import total_change
from fide_tracker.rating.months import label_for


def most_popular_month(records: Sequence[GameRecord], now: datetime) -> str:
    """Label ('August 2025') of the month with the most games. Ties go to the month reached first. Empty history -> month of `now`."""
    counts = Counter(label_for(record.date) for record in records)
    if not counts:
        return label_for(now)
    # Counter keeps insertion order and most_common() is stable for equal counts
    return counts.most_common(1)[0][0]


def create_snapshot(
    records: Sequence[GameRecord], category: RatingCategory, now: datetime
) -> BackupSnapshot | None:
    """Nothing to back up for an empty history."""
    if not records:
        return None

    return BackupSnapshot(
        month_label=most_popular_month(records, now),
        rating_category=category,
        records=tuple(records),
        created_at=now,
        total_change=total_change(records),
        game_count=len(records),
    )


def upsert_snapshot(
    snapshots: Sequence[BackupSnapshot], snapshot: BackupSnapshot
) -> list[BackupSnapshot]:
    """One snapshot per month label and category: a newer snapshot replaces the older one in place."""

    def _same_slot(existing: BackupSnapshot) -> bool:
        return (
            existing.month_label == snapshot.month_label
            and existing.rating_category == snapshot.rating_category
        )

    if any(_same_slot(existing) for existing in snapshots):
        return [snapshot if _same_slot(existing) else existing for existing in snapshots]
    return [*snapshots, snapshot]
