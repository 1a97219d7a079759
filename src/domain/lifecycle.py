"""Match lifecycle states and league rating policies."""

from __future__ import annotations

from enum import Enum


class MatchStatus(str, Enum):
    """Persisted existence state of a match record.

    Rejected matches are hard-deleted, so there is no rejected status.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"


class RatingUpdateMode(str, Enum):
    """When accepted matches move ratings for a league."""

    IMMEDIATE = "immediate"
    PERIODIC = "periodic"


class MatchLifecycle(str, Enum):
    """Combined view of (status, rating_applied)."""

    PENDING = "pending"
    AWAITING_RATING = "awaiting_rating"
    RATING_APPLIED = "rating_applied"

    @classmethod
    def from_record(cls, status: MatchStatus, rating_applied: bool) -> MatchLifecycle:
        if status is MatchStatus.PENDING:
            if rating_applied:
                raise ValueError("A pending match cannot have its rating applied")
            return cls.PENDING
        return cls.RATING_APPLIED if rating_applied else cls.AWAITING_RATING


__all__ = ["MatchLifecycle", "MatchStatus", "RatingUpdateMode"]
