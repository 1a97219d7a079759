"""Apply one accepted match's rating change inside the caller's transaction."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from domain.errors import InvalidStateError, NotFoundError
from domain.lifecycle import MatchLifecycle
from domain.ratings.calculator import RatingCalculator, RatingOutcome
from models import Match, RosterEntry
from repositories.history import insert_match_history
from repositories.roster import get_roster_by_id, set_rating


@dataclass(frozen=True)
class AppliedRating:
    match_id: int
    player1: RosterEntry
    player2: RosterEntry
    outcome: RatingOutcome

    @property
    def deltas(self) -> tuple[int, int]:
        return self.outcome.delta_a, self.outcome.delta_b


def apply_match_rating(
    session: Session,
    match: Match,
    calculator: RatingCalculator,
    *,
    applied_at: datetime,
) -> AppliedRating:
    """Rate ``match`` against the rosters' live ratings and persist the result.

    Both roster rows are re-read under a row lock, so the calculation sees
    every rating change committed before this transaction. The match's
    pre-match snapshot is overwritten with those live ratings.
    """
    if match.lifecycle is not MatchLifecycle.AWAITING_RATING:
        raise InvalidStateError(
            f"Match {match.id} is {match.lifecycle.value}; only accepted, unrated matches can be rated"
        )

    # Lock in id order so two transactions sharing rosters cannot deadlock.
    locked: dict[int, RosterEntry] = {}
    for roster_id in sorted(match.roster_ids):
        entry = get_roster_by_id(session, match.league_id, roster_id, for_update=True)
        if entry is None:
            raise NotFoundError(
                f"Roster entry {roster_id} for match {match.id} not found in league {match.league_id}"
            )
        locked[roster_id] = entry
    player1 = locked[match.player1_roster_id]
    player2 = locked[match.player2_roster_id]

    player1_won = match.player1_sets_won > match.player2_sets_won
    outcome = calculator.rate(
        player1.rating,
        player2.rating,
        match.player1_points_total,
        match.player2_points_total,
        player1_won,
        match.player1_sets_won,
        match.player2_sets_won,
    )

    match.player1_rating_before = outcome.rating_a
    match.player2_rating_before = outcome.rating_b
    match.player1_rating_after = outcome.new_rating_a
    match.player2_rating_after = outcome.new_rating_b
    match.winner_roster_id = player1.id if player1_won else player2.id

    set_rating(player1, outcome.new_rating_a)
    set_rating(player2, outcome.new_rating_b)
    session.flush()

    insert_match_history(session, match, player1, player2, recorded_at=applied_at)

    match.rating_applied = True
    match.rating_applied_at = applied_at
    session.flush()

    return AppliedRating(match_id=match.id, player1=player1, player2=player2, outcome=outcome)


__all__ = ["AppliedRating", "apply_match_rating"]
