"""Match formats and their set thresholds."""

from __future__ import annotations

from enum import Enum


class MatchFormat(str, Enum):
    """Best-of-N formats a league match can be played in."""

    BEST_OF_1 = "best_of_1"
    BEST_OF_3 = "best_of_3"
    BEST_OF_5 = "best_of_5"
    BEST_OF_7 = "best_of_7"

    @property
    def max_sets(self) -> int:
        return _MAX_SETS[self]

    @property
    def wins_needed(self) -> int:
        return self.max_sets // 2 + 1

    @classmethod
    def from_wins_needed(cls, wins_needed: int) -> MatchFormat:
        for match_format in cls:
            if match_format.wins_needed == wins_needed:
                return match_format
        raise ValueError(f"No match format requires {wins_needed} winning sets")

    @classmethod
    def from_sets_won(cls, sets_a: int, sets_b: int) -> MatchFormat:
        """Infer the format from the winner's set count."""
        return cls.from_wins_needed(max(sets_a, sets_b))


_MAX_SETS = {
    MatchFormat.BEST_OF_1: 1,
    MatchFormat.BEST_OF_3: 3,
    MatchFormat.BEST_OF_5: 5,
    MatchFormat.BEST_OF_7: 7,
}


__all__ = ["MatchFormat"]
