"""Error taxonomy raised by the rating core."""

from __future__ import annotations


class LeagueRatingError(Exception):
    """Base class for all rating-core errors."""


class ValidationError(LeagueRatingError):
    """Scores or inputs are malformed or inconsistent; nothing was written."""


class AuthorizationError(LeagueRatingError):
    """Actor lacks admin standing or is not a participant of the match."""


class InvalidStateError(LeagueRatingError):
    """Operation does not apply to the match's current lifecycle state."""


class NotFoundError(LeagueRatingError):
    """Referenced league, match or roster entry does not exist (in that league)."""


class PolicyError(LeagueRatingError):
    """Operation conflicts with the league's rating update policy."""


class PersistenceError(LeagueRatingError):
    """The store failed; the unit of work was rolled back."""


__all__ = [
    "AuthorizationError",
    "InvalidStateError",
    "LeagueRatingError",
    "NotFoundError",
    "PersistenceError",
    "PolicyError",
    "ValidationError",
]
