"""Persistence helpers for leagues."""

from __future__ import annotations

from sqlalchemy.orm import Session

from domain.errors import NotFoundError
from domain.lifecycle import RatingUpdateMode
from models import League


def get_league(session: Session, league_id: int) -> League:
    league = session.get(League, league_id)
    if league is None:
        raise NotFoundError(f"League {league_id} not found")
    return league


def create_league(
    session: Session,
    *,
    name: str,
    rating_update_mode: RatingUpdateMode = RatingUpdateMode.IMMEDIATE,
) -> League:
    league = League(name=name, rating_update_mode=rating_update_mode)
    session.add(league)
    session.flush()
    return league
