"""
FIDE rating change for a single game.

Standard logistic Elo update: the player scores S (1, 0.5 or 0) against an expected score E derived from the rating difference,
and the rating moves by K * (S - E). Following the FIDE handbook, a rating difference of more than 400 points counts as exactly 400.
"""

from decimal import ROUND_HALF_UP, Decimal

from fide_tracker.core.exceptions import InvalidOutcomeError
from fide_tracker.core.shared_types import Outcome

MAX_RATING_DIFFERENCE = 400

OUTCOME_SCORES: dict[Outcome, float] = {
    Outcome.WIN: 1.0,
    Outcome.DRAW: 0.5,
    Outcome.LOSS: 0.0,
}

_TENTHS = Decimal("0.1")
_WHOLE = Decimal("1")


def round_to_tenths(value: float) -> float:
    """
    Round to one decimal, half away from zero.

    Works on the shortest decimal representation of the float, so 0.1 + 0.2 becomes 0.3 and 0.25 becomes 0.3 (not 0.2).
    """
    return float(Decimal(repr(value)).quantize(_TENTHS, rounding=ROUND_HALF_UP))


def round_to_whole(value: float) -> int:
    """Round to a whole rating point, half away from zero (same decimal handling as round_to_tenths)."""
    return int(Decimal(repr(value)).quantize(_WHOLE, rounding=ROUND_HALF_UP))


def clamp_difference(diff: float) -> float:
    return max(-MAX_RATING_DIFFERENCE, min(MAX_RATING_DIFFERENCE, diff))


def expected_score(player_rating: float, opponent_rating: float) -> float:
    """Probability-weighted score of the player before the game, using the capped rating difference."""
    diff = clamp_difference(opponent_rating - player_rating)
    return 1 / (1 + 10 ** (diff / MAX_RATING_DIFFERENCE))


def to_outcome(outcome: Outcome | str) -> Outcome:
    """Interpret a raw outcome value. Never guesses: unknown values are an error."""
    try:
        return Outcome(outcome)
    except ValueError as exc:
        raise InvalidOutcomeError(
            f"Invalid game result: expected one of {', '.join(Outcome)} but got {outcome!r}"
        ) from exc


def compute_rating_change(
    player_rating: float,
    opponent_rating: float,
    outcome: Outcome | str,
    k_factor: float,
) -> float:
    """Rating delta for the player, rounded to one decimal."""
    score = OUTCOME_SCORES[to_outcome(outcome)]
    expected = expected_score(player_rating, opponent_rating)
    return round_to_tenths(k_factor * (score - expected))
