"""
Month keys: '<year>-<Mon>' identifiers, e.g. '2025-Aug'.

A month key is derived once from the game date and stored on the record.
The same derivation is used for "now" to decide which month is the current (editable) one.
"""

from datetime import date

from fide_tracker.core.exceptions import InvalidMonthKeyError
from fide_tracker.core.shared_types import MONTH_ABBREVIATIONS, MONTH_NAMES

# Lookup accepting both "aug" and "august" (keys written by older clients use either width)
_MONTH_LOOKUP: dict[str, int] = {
    **{abbr.lower(): index for index, abbr in enumerate(MONTH_ABBREVIATIONS, start=1)},
    **{name.lower(): index for index, name in enumerate(MONTH_NAMES, start=1)},
    "sept": 9,
}


def month_key_for(day: date) -> str:
    return canonical_key(day.year, day.month)


def canonical_key(year: int, month: int) -> str:
    """(2025, 9) -> '2025-Sep'. The year is zero-padded so every key parses back."""
    return f"{year:04d}-{MONTH_ABBREVIATIONS[month - 1]}"


def parse_month_key(key: str) -> tuple[int, int]:
    """Split a month key into (year, month number). Raises InvalidMonthKeyError if either half is unreadable."""
    if not isinstance(key, str):
        raise InvalidMonthKeyError(f"Month key must be a string, got {key!r}")

    year_part, separator, month_part = key.strip().partition("-")
    if not separator or not (year_part.isdigit() and len(year_part) == 4):
        raise InvalidMonthKeyError(f"Cannot interpret {key!r} as '<year>-<month>'.")

    month = _MONTH_LOOKUP.get(month_part.lower())
    if month is None:
        raise InvalidMonthKeyError(f"Unknown month name {month_part!r} in month key {key!r}.")
    return int(year_part), month


def month_start(key: str) -> date:
    year, month = parse_month_key(key)
    return date(year, month, 1)


def display_label(key: str) -> str:
    """'2025-Aug' -> 'August 2025'"""
    year, month = parse_month_key(key)
    return f"{MONTH_NAMES[month - 1]} {year}"


def label_for(day: date) -> str:
    return f"{MONTH_NAMES[day.month - 1]} {day.year}"
