"""
Stored record layouts and the one-way migration into the current GameRecord.

Version 0: the flat camelCase objects older clients kept in on-device storage.
           ratingType / monthKey / id may be missing, dates are 'YYYY-MM-DD' or locale strings such as '8/3/2025'.
Version 1: snake_case dict written by serialize_record(), tagged with "schema_version": 1.

Migration happens once, at the storage boundary. The rating domain only ever sees GameRecord instances.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any
from uuid import NAMESPACE_URL, UUID, uuid4, uuid5

from fide_tracker.core.exceptions import InvalidOutcomeError, MigrationError
from fide_tracker.core.models import GameRecord
from fide_tracker.core.shared_types import RatingCategory
from fide_tracker.db.schema import RECORD_SCHEMA_VERSION
from fide_tracker.rating.engine import to_outcome
from fide_tracker.rating.months import month_key_for

logger = logging.getLogger(__name__)

# Legacy ids were timestamp+random strings; map them onto stable UUIDs so the same legacy record always gets the same id
LEGACY_ID_NAMESPACE = uuid5(NAMESPACE_URL, "fide-tracker/legacy-record")

_SLASH_DATE_FORMATS = ("%m/%d/%Y", "%d/%m/%Y")

# version 0 key -> GameRecord field
_V0_FIELDS: dict[str, str] = {
    "playerRating": "player_rating",
    "opponentName": "opponent_name",
    "opponentRating": "opponent_rating",
    "kFactor": "k_factor",
    "result": "outcome",
    "ratingChange": "rating_change",
    "ratingType": "rating_category",
    "date": "date",
    "monthKey": "month_key",
    "id": "id",
}


def parse_stored_date(value: str | date) -> date:
    """Accept ISO dates (optionally with a time part) and the slash formats written by older clients (US order first)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    for fmt in _SLASH_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise MigrationError(f"Cannot interpret stored date {value!r}.")


def parse_stored_id(value: Any) -> UUID:
    if value is None or value == "":
        return uuid4()
    try:
        return UUID(str(value))
    except ValueError:
        return uuid5(LEGACY_ID_NAMESPACE, str(value))


def schema_version(raw: Mapping[str, Any]) -> int:
    return int(raw.get("schema_version", 0))


def migrate_payload(raw: Mapping[str, Any]) -> GameRecord:
    """Convert a stored payload (any known version) to a GameRecord."""
    version = schema_version(raw)
    if version == 0:
        fields = {_V0_FIELDS[key]: value for key, value in raw.items() if key in _V0_FIELDS}
    elif version == RECORD_SCHEMA_VERSION:
        fields = dict(raw)
    else:
        raise MigrationError(f"Unknown record schema version {version}.")

    try:
        game_date = parse_stored_date(fields["date"])
        outcome = to_outcome(fields["outcome"])
        category = RatingCategory(fields.get("rating_category") or RatingCategory.STANDARD)
        record = GameRecord(
            id=parse_stored_id(fields.get("id")),
            player_rating=int(fields["player_rating"]),
            opponent_name=fields.get("opponent_name") or "",
            opponent_rating=int(fields["opponent_rating"]),
            k_factor=float(fields["k_factor"]),
            outcome=outcome,
            rating_change=float(fields["rating_change"]),
            rating_category=category,
            date=game_date,
            month_key=fields.get("month_key") or month_key_for(game_date),
        )
    except KeyError as exc:
        raise MigrationError(f"Stored record is missing field {exc.args[0]!r}.") from exc
    except (InvalidOutcomeError, ValueError, TypeError) as exc:
        raise MigrationError(f"Stored record could not be read: {exc}") from exc

    if version < RECORD_SCHEMA_VERSION:
        logger.info("Migrated record %s from schema version %d", record.id, version)
    return record


def migrate_payloads(raws: Iterable[Mapping[str, Any]]) -> list[GameRecord]:
    """Migrate a whole stored history, keeping its order. A single unreadable record fails the migration rather than being dropped."""
    return [migrate_payload(raw) for raw in raws]


def serialize_record(record: GameRecord) -> dict[str, Any]:
    """Current (version 1) storage layout of a record. JSON-safe."""
    return {
        "schema_version": RECORD_SCHEMA_VERSION,
        "id": str(record.id),
        "player_rating": record.player_rating,
        "opponent_name": record.opponent_name,
        "opponent_rating": record.opponent_rating,
        "k_factor": record.k_factor,
        "outcome": str(record.outcome),
        "rating_change": record.rating_change,
        "rating_category": str(record.rating_category),
        "date": record.date.isoformat(),
        "month_key": record.month_key,
    }
