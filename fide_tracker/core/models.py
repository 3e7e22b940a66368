"""
Boundary layer data model(s).

These objects are passed between the Service, the rating domain, and the repositories.
All of them are frozen: every "change" to a record produces a new instance, which keeps the aggregation logic a pure fold.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID, uuid4

from fide_tracker.core.shared_types import Outcome, RatingCategory


@dataclass(frozen=True)
class GameRecord:
    """
    One played game.

    rating_change and month_key are derived from the other fields at creation time and stored.
    They only change through rating.aggregator.recompute().
    """

    player_rating: int
    opponent_rating: int
    k_factor: float
    outcome: Outcome
    rating_change: float
    rating_category: RatingCategory
    date: date
    month_key: str
    opponent_name: str = ""
    id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True)
class MonthlyBucket:
    """Read-view over the records sharing a month key. Never persisted."""

    month_key: str
    display_label: str
    records: tuple[GameRecord, ...]
    total_change: float
    game_count: int
    is_current_month: bool

    @property
    def is_mutable(self) -> bool:
        """Only the current month accepts edits; past months are frozen history."""
        return self.is_current_month


@dataclass(frozen=True)
class BackupSnapshot:
    """Immutable copy of a history, labelled with the month most of its games were played in."""

    month_label: str
    rating_category: RatingCategory
    records: tuple[GameRecord, ...]
    created_at: datetime
    total_change: float
    game_count: int
    id: UUID = field(default_factory=uuid4)

    @property
    def wins(self) -> int:
        return self._count(Outcome.WIN)

    @property
    def draws(self) -> int:
        return self._count(Outcome.DRAW)

    @property
    def losses(self) -> int:
        return self._count(Outcome.LOSS)

    def _count(self, outcome: Outcome) -> int:
        return sum(1 for record in self.records if record.outcome == outcome)
