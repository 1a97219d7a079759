"""Match result validation."""

from __future__ import annotations

from collections.abc import Sequence

from domain.errors import ValidationError
from domain.ratings.formats import MatchFormat


def _require_count(value: object, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{label} must be an integer, got {value!r}")
    if value < 0:
        raise ValidationError(f"{label} must be >= 0, got {value}")
    return value


def coerce_match_format(match_format: MatchFormat | str) -> MatchFormat:
    try:
        return MatchFormat(match_format)
    except ValueError:
        valid = ", ".join(member.value for member in MatchFormat)
        raise ValidationError(
            f"Invalid match format {match_format!r}; expected one of: {valid}"
        ) from None


def validate_match_result(
    sets_a: int,
    sets_b: int,
    match_format: MatchFormat | str,
) -> MatchFormat:
    """Check set counts against the format and return the parsed format."""
    sets_a = _require_count(sets_a, "sets won by player 1")
    sets_b = _require_count(sets_b, "sets won by player 2")
    parsed_format = coerce_match_format(match_format)

    if sets_a == sets_b:
        raise ValidationError("Match must have a winner")

    winner_sets = max(sets_a, sets_b)
    total_sets = sets_a + sets_b
    if winner_sets != parsed_format.wins_needed or total_sets > parsed_format.max_sets:
        raise ValidationError(
            f"Best of {parsed_format.max_sets}: winner must have {parsed_format.wins_needed} "
            f"sets, max {parsed_format.max_sets} sets total (got {sets_a}-{sets_b})"
        )
    return parsed_format


def validate_points(points_a: int, points_b: int) -> None:
    _require_count(points_a, "points won by player 1")
    _require_count(points_b, "points won by player 2")


def validate_set_scores(
    set_scores: Sequence[tuple[int, int]],
    match_format: MatchFormat,
) -> None:
    """Per-set scores are optional; when given they must fit the format."""
    if len(set_scores) > match_format.max_sets:
        raise ValidationError(
            f"{len(set_scores)} set scores given for a best of {match_format.max_sets} match"
        )
    for set_number, (score_a, score_b) in enumerate(set_scores, start=1):
        _require_count(score_a, f"set {set_number} score for player 1")
        _require_count(score_b, f"set {set_number} score for player 2")


__all__ = [
    "coerce_match_format",
    "validate_match_result",
    "validate_points",
    "validate_set_scores",
]
