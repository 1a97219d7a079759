"""ORM models."""

from models.base import Base
from models.league import League
from models.match import Match, MatchSet
from models.notification import Notification
from models.rating_history import RatingHistory
from models.roster import RosterEntry

__all__ = [
    "Base",
    "League",
    "Match",
    "MatchSet",
    "Notification",
    "RatingHistory",
    "RosterEntry",
]
