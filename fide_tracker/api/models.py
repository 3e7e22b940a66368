"""Requests and Response models"""

from datetime import date, datetime
from typing import Any, Optional, Self
from uuid import UUID

from pydantic import BaseModel, field_validator, model_validator

from fide_tracker.core.exceptions import InvalidRequestError
from fide_tracker.core.models import BackupSnapshot, GameRecord, MonthlyBucket
from fide_tracker.core.shared_types import Outcome, RatingCategory
from fide_tracker.rating.engine import to_outcome

# Ratings accepted by the calculator form (FIDE rating floor is 1400)
MIN_RATING = 1400
MAX_RATING = 3500


def _validate_rating(value: Optional[int]) -> Optional[int]:
    if value is None:
        return value
    if not MIN_RATING <= value <= MAX_RATING:
        raise InvalidRequestError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {value}."
        )
    return value


def _validate_k_factor(value: Optional[float]) -> Optional[float]:
    if value is not None and value <= 0:
        raise InvalidRequestError(f"K-factor must be positive, got {value}.")
    return value


def _validate_outcome(value: Any) -> Any:
    # InvalidOutcomeError is raised as-is so a wrong result is reported as such, not as a generic validation error
    if value is None:
        return value
    return to_outcome(value)


# --- REQUEST MODELS ---
class CalculateRequest(BaseModel):
    player_rating: int
    opponent_rating: int
    outcome: Outcome
    category: RatingCategory = RatingCategory.STANDARD
    k_factor: Optional[float] = None

    @field_validator("player_rating", "opponent_rating")
    @classmethod
    def validate_rating(cls, value: int) -> int:
        return _validate_rating(value)

    @field_validator("outcome", mode="before")
    @classmethod
    def validate_outcome(cls, value: Any) -> Any:
        return _validate_outcome(value)

    @field_validator("k_factor")
    @classmethod
    def validate_k_factor(cls, value: Optional[float]) -> Optional[float]:
        return _validate_k_factor(value)


class RecordGameRequest(CalculateRequest):
    opponent_name: str = ""
    game_date: Optional[date] = None


class EditGameRequest(BaseModel):
    """Only the fields that are set get patched. With recompute=True the rating change and month are derived again."""

    record_id: UUID
    player_rating: Optional[int] = None
    opponent_rating: Optional[int] = None
    opponent_name: Optional[str] = None
    k_factor: Optional[float] = None
    outcome: Optional[Outcome] = None
    game_date: Optional[date] = None
    recompute: bool = False

    @field_validator("player_rating", "opponent_rating")
    @classmethod
    def validate_rating(cls, value: Optional[int]) -> Optional[int]:
        return _validate_rating(value)

    @field_validator("outcome", mode="before")
    @classmethod
    def validate_outcome(cls, value: Any) -> Any:
        return _validate_outcome(value)

    @field_validator("k_factor")
    @classmethod
    def validate_k_factor(cls, value: Optional[float]) -> Optional[float]:
        return _validate_k_factor(value)

    def to_patch(self) -> dict[str, Any]:
        """GameRecord field names -> new values, for the fields present in the request."""
        patch = self.model_dump(
            exclude={"record_id", "recompute"}, exclude_none=True
        )
        if "game_date" in patch:
            patch["date"] = patch.pop("game_date")
        return patch


class DeleteGameRequest(BaseModel):
    """Remove by record ID, or by position within the category's history (older clients)."""

    category: RatingCategory = RatingCategory.STANDARD
    record_id: Optional[UUID] = None
    position: Optional[int] = None

    @model_validator(mode="after")
    def exactly_one_target(self) -> Self:
        if (self.record_id is None) == (self.position is None):
            raise InvalidRequestError("Provide either record_id or position.")
        return self


class MonthlySummaryRequest(BaseModel):
    category: RatingCategory = RatingCategory.STANDARD
    # defaults to today (UTC) when left out
    today: Optional[date] = None


class LiveRatingRequest(BaseModel):
    category: RatingCategory = RatingCategory.STANDARD
    # defaults to the rating of the latest tracked game
    player_rating: Optional[int] = None

    @field_validator("player_rating")
    @classmethod
    def validate_rating(cls, value: Optional[int]) -> Optional[int]:
        return _validate_rating(value)


class ReorderRequest(BaseModel):
    category: RatingCategory
    record_ids: list[UUID]


class BackupRequest(BaseModel):
    category: RatingCategory = RatingCategory.STANDARD


class BackupIdRequest(BaseModel):
    backup_id: UUID


# --- RESPONSE MODELS ---
class CalculateResponse(BaseModel):
    rating_change: float
    expected_score: float
    k_factor: float


class LiveRatingResponse(BaseModel):
    category: RatingCategory
    player_rating: int
    total_change: float
    live_rating: int


class GameRecordResponse(BaseModel):
    record_id: UUID
    player_rating: int
    opponent_name: str
    opponent_rating: int
    k_factor: float
    outcome: Outcome
    rating_change: float
    category: RatingCategory
    game_date: date
    month_key: str

    @classmethod
    def from_record(cls, record: GameRecord) -> Self:
        return cls(
            record_id=record.id,
            player_rating=record.player_rating,
            opponent_name=record.opponent_name,
            opponent_rating=record.opponent_rating,
            k_factor=record.k_factor,
            outcome=record.outcome,
            rating_change=record.rating_change,
            category=record.rating_category,
            game_date=record.date,
            month_key=record.month_key,
        )


class MonthlyBucketResponse(BaseModel):
    month_key: str
    display_label: str
    records: list[GameRecordResponse]
    total_change: float
    game_count: int
    is_current_month: bool
    is_mutable: bool

    @classmethod
    def from_bucket(cls, bucket: MonthlyBucket) -> Self:
        return cls(
            month_key=bucket.month_key,
            display_label=bucket.display_label,
            records=[GameRecordResponse.from_record(r) for r in bucket.records],
            total_change=bucket.total_change,
            game_count=bucket.game_count,
            is_current_month=bucket.is_current_month,
            is_mutable=bucket.is_mutable,
        )


class BackupResponse(BaseModel):
    backup_id: UUID
    month_label: str
    category: RatingCategory
    created_at: datetime
    total_change: float
    game_count: int
    wins: int
    draws: int
    losses: int
    records: list[GameRecordResponse]

    @classmethod
    def from_snapshot(cls, snapshot: BackupSnapshot) -> Self:
        return cls(
            backup_id=snapshot.id,
            month_label=snapshot.month_label,
            category=snapshot.rating_category,
            created_at=snapshot.created_at,
            total_change=snapshot.total_change,
            game_count=snapshot.game_count,
            wins=snapshot.wins,
            draws=snapshot.draws,
            losses=snapshot.losses,
            records=[GameRecordResponse.from_record(r) for r in snapshot.records],
        )
