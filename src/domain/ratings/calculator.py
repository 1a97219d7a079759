"""League Elo rating model."""

from __future__ import annotations

from dataclasses import dataclass
from math import floor

from domain.ratings.formats import MatchFormat


DEFAULT_INITIAL_RATING = 1200


@dataclass(frozen=True)
class RatingParameters:
    initial_rating: int = DEFAULT_INITIAL_RATING
    k_factor: float = 46.0
    scale_factor: float = 400.0
    points_weight: float = 0.7
    points_factor_cap: float = 0.35
    bo1_multiplier: float = 0.512
    bo3_multiplier: float = 0.64
    bo5_multiplier: float = 0.8
    bo7_multiplier: float = 1.0

    def format_multiplier(self, match_format: MatchFormat) -> float:
        if match_format is MatchFormat.BEST_OF_7:
            return self.bo7_multiplier
        if match_format is MatchFormat.BEST_OF_5:
            return self.bo5_multiplier
        if match_format is MatchFormat.BEST_OF_3:
            return self.bo3_multiplier
        return self.bo1_multiplier


@dataclass(frozen=True)
class RatingOutcome:
    """New ratings for both sides plus the terms that produced them."""

    rating_a: int
    rating_b: int
    new_rating_a: int
    new_rating_b: int
    expected_score_a: float
    expected_score_b: float
    points_factor_a: float
    points_factor_b: float
    format_multiplier: float
    k_factor: float

    @property
    def delta_a(self) -> int:
        return self.new_rating_a - self.rating_a

    @property
    def delta_b(self) -> int:
        return self.new_rating_b - self.rating_b


def calculate_expected_score(rating: float, opponent_rating: float, scale_factor: float = 400.0) -> float:
    """Compute the Elo expected score for one side."""
    return 1.0 / (1.0 + 10.0 ** ((opponent_rating - rating) / scale_factor))


def round_half_up(value: float) -> int:
    return int(floor(value + 0.5))


class RatingCalculator:
    """Stateless two-player rating update.

    Each side's delta is scaled by its own points factor, so the two deltas
    are generally not equal and opposite. Callers validate sets and format
    before rating.
    """

    def __init__(self, params: RatingParameters | None = None) -> None:
        self.params = params or RatingParameters()

    def points_factor(self, points_for: int, points_against: int) -> float:
        total_points = points_for + points_against
        share = points_for / total_points if total_points > 0 else 0.5
        factor = 1.0 + (share - 0.5) * self.params.points_weight
        cap = self.params.points_factor_cap
        return max(1.0 - cap, min(factor, 1.0 + cap))

    def rate(
        self,
        rating_a: int,
        rating_b: int,
        points_a: int,
        points_b: int,
        a_won: bool,
        sets_a: int,
        sets_b: int,
    ) -> RatingOutcome:
        try:
            match_format = MatchFormat.from_sets_won(sets_a, sets_b)
        except ValueError:
            # Unknown set counts are weighted like the shortest format.
            match_format = MatchFormat.BEST_OF_1
        format_multiplier = self.params.format_multiplier(match_format)
        effective_k = self.params.k_factor * format_multiplier

        expected_a = calculate_expected_score(rating_a, rating_b, self.params.scale_factor)
        expected_b = 1.0 - expected_a
        actual_a = 1.0 if a_won else 0.0
        actual_b = 1.0 - actual_a

        points_factor_a = self.points_factor(points_a, points_b)
        points_factor_b = self.points_factor(points_b, points_a)

        delta_a = effective_k * points_factor_a * (actual_a - expected_a)
        delta_b = effective_k * points_factor_b * (actual_b - expected_b)

        return RatingOutcome(
            rating_a=rating_a,
            rating_b=rating_b,
            new_rating_a=round_half_up(rating_a + delta_a),
            new_rating_b=round_half_up(rating_b + delta_b),
            expected_score_a=expected_a,
            expected_score_b=expected_b,
            points_factor_a=points_factor_a,
            points_factor_b=points_factor_b,
            format_multiplier=format_multiplier,
            k_factor=effective_k,
        )


__all__ = [
    "DEFAULT_INITIAL_RATING",
    "RatingCalculator",
    "RatingOutcome",
    "RatingParameters",
    "calculate_expected_score",
    "round_half_up",
]
