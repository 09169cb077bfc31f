import math
from dataclasses import dataclass

K_FACTOR = 32
RATING_SCALE = 400.0


@dataclass(frozen=True)
class RatingUpdate:
    new_rating_a: int
    new_rating_b: int
    delta_a: int
    delta_b: int


def expected_score(rating: float, opponent_rating: float) -> float:
    """Return the logistic Elo expectation for ``rating`` against ``opponent_rating``."""

    return 1 / (1 + 10 ** ((opponent_rating - rating) / RATING_SCALE))


def _round_half_up(value: float) -> int:
    # Matches the rounding used for every delta already stored on match records.
    return math.floor(value + 0.5)


def compute_rating_update(
    rating_a: int,
    rating_b: int,
    wins_a: int,
    wins_b: int,
    *,
    k: float = K_FACTOR,
) -> RatingUpdate:
    """Return new ratings for both players after a best-of-three match.

    A side scores ``1`` only when it won strictly more games than the other
    side, so callers are expected to validate the result first (see
    :func:`~league.services.validation.validate_best_of_three`); a tie is not
    rejected here and counts as a loss for both players.

    Ratings are not clamped. The function performs no I/O.
    """

    actual_a = 1 if wins_a > wins_b else 0
    actual_b = 1 if wins_b > wins_a else 0

    delta_a = _round_half_up(k * (actual_a - expected_score(rating_a, rating_b)))
    delta_b = _round_half_up(k * (actual_b - expected_score(rating_b, rating_a)))

    return RatingUpdate(
        new_rating_a=rating_a + delta_a,
        new_rating_b=rating_b + delta_b,
        delta_a=delta_a,
        delta_b=delta_b,
    )
