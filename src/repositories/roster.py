"""Persistence helpers for league roster entries."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from domain.ratings.calculator import RatingParameters
from models import RosterEntry


def get_roster_by_account(session: Session, league_id: int, account_id: int) -> RosterEntry | None:
    statement = select(RosterEntry).where(
        RosterEntry.league_id == league_id,
        RosterEntry.account_id == account_id,
    )
    return session.execute(statement).scalar_one_or_none()


def get_roster_by_id(
    session: Session,
    league_id: int,
    roster_id: int,
    *,
    for_update: bool = False,
) -> RosterEntry | None:
    """Fetch a roster entry scoped to its league.

    With ``for_update`` the row is locked for the rest of the transaction on
    backends that support row locks and always re-read from the database.
    """
    statement = select(RosterEntry).where(
        RosterEntry.league_id == league_id,
        RosterEntry.id == roster_id,
    )
    if for_update:
        statement = statement.with_for_update().execution_options(populate_existing=True)
    return session.execute(statement).scalar_one_or_none()


def add_roster_entry(
    session: Session,
    *,
    league_id: int,
    display_name: str,
    rating: int | None = None,
    account_id: int | None = None,
    is_admin: bool = False,
    parameters: RatingParameters | None = None,
) -> RosterEntry:
    """Create a roster slot; ``account_id=None`` creates a placeholder.

    Without an explicit ``rating`` the entry starts at the configured
    ``initial_rating``.
    """
    if rating is None:
        rating = (parameters or RatingParameters()).initial_rating
    entry = RosterEntry(
        league_id=league_id,
        account_id=account_id,
        display_name=display_name,
        rating=rating,
        is_admin=is_admin,
    )
    session.add(entry)
    session.flush()
    return entry


def set_rating(entry: RosterEntry, rating: int) -> None:
    entry.rating = rating


def is_league_admin(session: Session, league_id: int, account_id: int) -> bool:
    entry = get_roster_by_account(session, league_id, account_id)
    return bool(entry is not None and entry.is_admin)


def fetch_leaderboard(session: Session, league_id: int) -> list[RosterEntry]:
    """Roster ordered by stored rating; ties broken by name then id."""
    statement = (
        select(RosterEntry)
        .where(RosterEntry.league_id == league_id)
        .order_by(RosterEntry.rating.desc(), RosterEntry.display_name, RosterEntry.id)
    )
    return list(session.scalars(statement))
