"""
Monthly aggregation of a game history, plus the record-level edit operations used on that history.

Every function here is a pure fold over an immutable input: collections come in, new collections go out.
Whether a month may be edited is only *reported* (MonthlyBucket.is_mutable); enforcing it is up to the caller.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import fields, replace
from datetime import date
from typing import Any
from uuid import UUID

from fide_tracker.core.exceptions import InvalidMonthKeyError, RecordPatchError
from fide_tracker.core.models import GameRecord, MonthlyBucket
from fide_tracker.core.shared_types import RatingCategory
from fide_tracker.rating.engine import (
    compute_rating_change,
    round_to_tenths,
    round_to_whole,
)
from fide_tracker.rating.months import (
    canonical_key,
    display_label,
    month_key_for,
    month_start,
    parse_month_key,
)

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = frozenset(f.name for f in fields(GameRecord)) - {"id"}


def filter_category(
    records: Iterable[GameRecord], category: RatingCategory
) -> list[GameRecord]:
    """Histories of different rating categories are independent and never aggregated together."""
    return [record for record in records if record.rating_category == category]


def bucket_key(record: GameRecord) -> str:
    """
    The stored month key, in its canonical spelling ('2025-sept' and '2025-Sep' share one bucket).

    A malformed stored key falls back to the key of the record's date: a miscategorised game is better than a dropped one.
    """
    try:
        year, month = parse_month_key(record.month_key)
    except InvalidMonthKeyError:
        fallback = month_key_for(record.date)
        logger.warning(
            "Record %s has malformed month key %r, grouping under %r",
            record.id,
            record.month_key,
            fallback,
        )
        return fallback
    return canonical_key(year, month)


def group_by_month(records: Iterable[GameRecord], now: date) -> list[MonthlyBucket]:
    """
    Group one category's history into monthly buckets, newest month first.

    `now` is supplied by the caller (never read from the system clock here); it only decides which bucket is the current month.
    """
    groups: dict[str, list[GameRecord]] = {}
    for record in records:
        groups.setdefault(bucket_key(record), []).append(record)

    current_key = month_key_for(now)
    buckets = [
        MonthlyBucket(
            month_key=key,
            display_label=display_label(key),
            records=tuple(members),
            total_change=round_to_tenths(sum(r.rating_change for r in members)),
            game_count=len(members),
            is_current_month=key == current_key,
        )
        for key, members in groups.items()
    ]

    # Sort on the calendar month, not on the key string ("2025-Jan" < "2024-Dec" as strings)
    buckets.sort(key=lambda bucket: month_start(bucket.month_key), reverse=True)
    return buckets


def total_change(records: Iterable[GameRecord]) -> float:
    return round_to_tenths(sum(record.rating_change for record in records))


def live_rating(player_rating: float, records: Iterable[GameRecord]) -> int:
    """The published rating moved by every tracked change, as a whole rating (what the next list would show)."""
    return round_to_whole(player_rating + total_change(records))


def apply_edit(
    records: Sequence[GameRecord], record_id: UUID, patch: Mapping[str, Any]
) -> list[GameRecord]:
    """
    Return a new history where the record with `record_id` has `patch` merged in.

    An unknown id is a no-op (the UI may still show a record that was deleted elsewhere).
    Derived fields are NOT recomputed: a record whose date is edited stays in the month it was entered in. Use recompute() for that.
    """
    invalid = set(patch) - PATCHABLE_FIELDS
    if invalid:
        raise RecordPatchError(
            f"Cannot patch field(s) {', '.join(sorted(invalid))} of a game record."
        )

    if not any(record.id == record_id for record in records):
        logger.debug("Edit for unknown record %s ignored", record_id)
        return list(records)

    return [
        replace(record, **patch) if record.id == record_id else record
        for record in records
    ]


def remove_record(
    records: Sequence[GameRecord], id_or_position: UUID | int
) -> list[GameRecord]:
    """
    Remove by stable id (preferred) or by position (legacy callers).

    Unknown ids and out-of-range positions are no-ops. Negative positions are treated as out of range rather than counting from the end.
    """
    if isinstance(id_or_position, int) and not isinstance(id_or_position, bool):
        if not 0 <= id_or_position < len(records):
            logger.debug("Removal at out-of-range position %d ignored", id_or_position)
            return list(records)
        return [r for i, r in enumerate(records) if i != id_or_position]

    return [record for record in records if record.id != id_or_position]


def recompute(record: GameRecord) -> GameRecord:
    """Re-derive both cached fields (rating_change and month_key) from the record's source fields."""
    return replace(
        record,
        rating_change=compute_rating_change(
            record.player_rating,
            record.opponent_rating,
            record.outcome,
            record.k_factor,
        ),
        month_key=month_key_for(record.date),
    )
