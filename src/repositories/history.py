"""Persistence helpers for the append-only rating history."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import insert, select
from sqlalchemy.orm import Session

from models import Match, RatingHistory, RosterEntry


def insert_match_history(
    session: Session,
    match: Match,
    player1: RosterEntry,
    player2: RosterEntry,
    *,
    recorded_at: datetime,
) -> None:
    """Insert the two history rows for an applied match."""
    payload = [
        {
            "league_id": match.league_id,
            "roster_id": player1.id,
            "account_id": player1.account_id,
            "match_id": match.id,
            "rating_before": match.player1_rating_before,
            "rating_after": match.player1_rating_after,
            "rating_delta": match.player1_rating_after - match.player1_rating_before,
            "recorded_at": recorded_at,
        },
        {
            "league_id": match.league_id,
            "roster_id": player2.id,
            "account_id": player2.account_id,
            "match_id": match.id,
            "rating_before": match.player2_rating_before,
            "rating_after": match.player2_rating_after,
            "rating_delta": match.player2_rating_after - match.player2_rating_before,
            "recorded_at": recorded_at,
        },
    ]
    session.execute(insert(RatingHistory), payload)


def fetch_history_for_match(session: Session, match_id: int) -> list[RatingHistory]:
    statement = select(RatingHistory).where(RatingHistory.match_id == match_id).order_by(RatingHistory.id)
    return list(session.scalars(statement))


def fetch_history_for_roster(session: Session, league_id: int, roster_id: int) -> list[RatingHistory]:
    statement = (
        select(RatingHistory)
        .where(RatingHistory.league_id == league_id, RatingHistory.roster_id == roster_id)
        .order_by(RatingHistory.recorded_at, RatingHistory.id)
    )
    return list(session.scalars(statement))
