"""Persistence helpers for match records."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from domain.errors import NotFoundError
from domain.lifecycle import MatchStatus
from models import Match, MatchSet, RosterEntry


def get_match(session: Session, match_id: int, *, for_update: bool = False) -> Match:
    statement = select(Match).where(Match.id == match_id)
    if for_update:
        statement = statement.with_for_update().execution_options(populate_existing=True)
    match = session.execute(statement).scalar_one_or_none()
    if match is None:
        raise NotFoundError(f"Match {match_id} not found")
    return match


def add_match(session: Session, match: Match) -> Match:
    session.add(match)
    session.flush()
    return match


def replace_set_scores(session: Session, match: Match, set_scores: Sequence[tuple[int, int]]) -> None:
    if match.sets:
        match.sets.clear()
        # Old rows must be gone before new set numbers are inserted.
        session.flush()
    for set_number, (player1_score, player2_score) in enumerate(set_scores, start=1):
        match.sets.append(
            MatchSet(
                set_number=set_number,
                player1_score=player1_score,
                player2_score=player2_score,
            )
        )


def delete_match(session: Session, match: Match) -> None:
    """Hard-delete a match; set scores go with it."""
    session.delete(match)
    session.flush()


def fetch_unapplied_match_ids(session: Session, league_id: int) -> list[int]:
    """Accepted matches still awaiting rating application, in acceptance order."""
    statement = (
        select(Match.id)
        .where(
            Match.league_id == league_id,
            Match.status == MatchStatus.ACCEPTED,
            Match.rating_applied.is_(False),
        )
        .order_by(Match.accepted_at, Match.id)
    )
    return list(session.scalars(statement))



def fetch_pending_matches(session: Session, *, admin_account_id: int | None = None) -> list[Match]:
    """Pending matches, oldest first.

    With ``admin_account_id`` only leagues where that account is a league
    admin are included; without it every league is.
    """
    statement = select(Match).where(Match.status == MatchStatus.PENDING)
    if admin_account_id is not None:
        administered = exists().where(
            RosterEntry.league_id == Match.league_id,
            RosterEntry.account_id == admin_account_id,
            RosterEntry.is_admin.is_(True),
        )
        statement = statement.where(administered)
    statement = statement.order_by(Match.created_at, Match.id)
    return list(session.scalars(statement))
