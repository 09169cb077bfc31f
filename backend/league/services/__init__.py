"""Internal application services."""

from .validation import ValidationError, validate_best_of_three
from .rating import K_FACTOR, RatingUpdate, compute_rating_update, expected_score
from .periods import (
    current_period,
    format_period,
    format_period_short,
    next_period,
    sort_periods,
)
from .match_counter import (
    MatchCount,
    MatchRecordLookup,
    SqlMatchRecordLookup,
    match_count,
    match_counts,
)

__all__ = [
    "validate_best_of_three",
    "ValidationError",
    "K_FACTOR",
    "RatingUpdate",
    "compute_rating_update",
    "expected_score",
    "current_period",
    "next_period",
    "sort_periods",
    "format_period",
    "format_period_short",
    "MatchCount",
    "MatchRecordLookup",
    "SqlMatchRecordLookup",
    "match_count",
    "match_counts",
]
