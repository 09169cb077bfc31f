from typing import Any

GAMES_TO_WIN = 2


class ValidationError(Exception):
    """Raised when a submitted match result is invalid."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


def _games(value: Any, label: str) -> int:
    # Reject booleans explicitly (bool is a subclass of int in Python)
    if isinstance(value, bool):
        raise ValidationError(f"{label} wins must be an integer (not a boolean).")
    try:
        games = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} wins must be an integer.")
    if games != value:
        raise ValidationError(f"{label} wins must be an integer.")
    if games < 0 or games > GAMES_TO_WIN:
        raise ValidationError(f"{label} wins must be between 0 and {GAMES_TO_WIN}.")
    return games


def validate_best_of_three(wins_a: Any, wins_b: Any) -> tuple[int, int]:
    """Validate a best-of-three result and return the normalized win counts.

    Rules:
    - Both counts are integers between 0 and 2 (booleans are rejected)
    - Ties are not allowed
    - Exactly one player has 2 wins
    """

    a = _games(wins_a, "Player 1")
    b = _games(wins_b, "Player 2")

    if a == b:
        raise ValidationError("There must be a winner (one player needs 2 wins).")
    if GAMES_TO_WIN not in (a, b):
        raise ValidationError("One player must have 2 wins.")

    return a, b
