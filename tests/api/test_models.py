from datetime import date
from uuid import UUID, uuid4

import pytest

from fide_tracker.api.models import (
    CalculateRequest,
    DeleteGameRequest,
    EditGameRequest,
    LiveRatingRequest,
    MonthlyBucketResponse,
    RecordGameRequest,
)
from fide_tracker.core.exceptions import InvalidOutcomeError, InvalidRequestError
from fide_tracker.core.shared_types import Outcome, RatingCategory
from fide_tracker.rating.aggregator import group_by_month


@pytest.fixture
def mock_id() -> UUID:
    return uuid4()


# -- Validation - CalculateRequest --
def test_valid_calculate_request() -> None:
    request = CalculateRequest(player_rating=1888, opponent_rating=1400, outcome="draw")
    assert request.outcome == Outcome.DRAW
    assert request.category == RatingCategory.STANDARD
    assert request.k_factor is None


@pytest.mark.parametrize("rating", [1399, 3501, 0, -1500])
def test_rating_out_of_range(rating: int) -> None:
    """Ratings outside the FIDE list range are a data-entry problem."""
    with pytest.raises(InvalidRequestError):
        _ = CalculateRequest(player_rating=rating, opponent_rating=1400, outcome="win")
    with pytest.raises(InvalidRequestError):
        _ = CalculateRequest(player_rating=1888, opponent_rating=rating, outcome="win")


@pytest.mark.parametrize("rating", [1400, 3500])
def test_rating_range_is_inclusive(rating: int) -> None:
    request = CalculateRequest(player_rating=rating, opponent_rating=rating, outcome="win")
    assert request.player_rating == rating


@pytest.mark.parametrize("k_factor", [0, -20])
def test_k_factor_must_be_positive(k_factor: float) -> None:
    with pytest.raises(InvalidRequestError):
        _ = CalculateRequest(
            player_rating=1888, opponent_rating=1400, outcome="win", k_factor=k_factor
        )


def test_invalid_outcome() -> None:
    with pytest.raises(InvalidOutcomeError):
        _ = RecordGameRequest(player_rating=1888, opponent_rating=1400, outcome="tie")


# -- Validation - EditGameRequest --
def test_edit_patch_contains_only_given_fields(mock_id: UUID) -> None:
    request = EditGameRequest(
        record_id=mock_id, game_date=date(2025, 8, 30), outcome="loss"
    )
    assert request.to_patch() == {"date": date(2025, 8, 30), "outcome": Outcome.LOSS}


def test_edit_rating_is_validated(mock_id: UUID) -> None:
    with pytest.raises(InvalidRequestError):
        _ = EditGameRequest(record_id=mock_id, opponent_rating=1200)


# -- Validation - LiveRatingRequest --
def test_live_rating_request_defaults() -> None:
    request = LiveRatingRequest()
    assert request.category == RatingCategory.STANDARD
    assert request.player_rating is None


def test_live_rating_request_checks_rating() -> None:
    with pytest.raises(InvalidRequestError):
        _ = LiveRatingRequest(player_rating=1200)


# -- Validation - DeleteGameRequest --
def test_delete_by_id_or_position(mock_id: UUID) -> None:
    assert DeleteGameRequest(record_id=mock_id).record_id == mock_id
    assert DeleteGameRequest(position=2).position == 2


@pytest.mark.parametrize(
    "target",
    [
        {},  # nothing to delete
        {"record_id": uuid4(), "position": 0},  # ambiguous
    ],
)
def test_delete_needs_exactly_one_target(target: dict) -> None:
    with pytest.raises(InvalidRequestError):
        _ = DeleteGameRequest(**target)


# -- Responses --
def test_bucket_response(record_factory) -> None:
    record = record_factory(game_date=date(2025, 8, 14))
    (bucket,) = group_by_month([record], date(2025, 8, 31))
    response = MonthlyBucketResponse.from_bucket(bucket)

    assert response.display_label == "August 2025"
    assert response.is_mutable
    assert response.records[0].record_id == record.id
    assert response.records[0].game_date == date(2025, 8, 14)
