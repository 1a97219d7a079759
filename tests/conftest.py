"""Shared fixtures: an in-memory SQLite store seeded with small leagues."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db import create_db_engine, create_session_factory, ensure_schema
from domain.accounts import Actor
from domain.lifecycle import RatingUpdateMode
from models import RosterEntry
from repositories.leagues import create_league
from repositories.roster import add_roster_entry
from services.consolidation import ConsolidationService
from services.locks import LeagueLockRegistry
from services.matches import MatchService
from services.notifications import RecordingNotifier

ADMIN_ACCOUNT_ID = 100
PLAYER_ACCOUNTS = {"alice": 1, "bob": 2, "carol": 3}


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0)) -> None:
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@dataclass(frozen=True)
class SeededLeague:
    league_id: int
    admin: Actor
    players: dict[str, Actor]
    roster_ids: dict[str, int]


def seed_league(
    session_factory: sessionmaker[Session],
    mode: RatingUpdateMode,
    *,
    name: str | None = None,
    rating: int | None = None,
) -> SeededLeague:
    with session_factory() as session, session.begin():
        league = create_league(session, name=name or f"{mode.value} league", rating_update_mode=mode)
        add_roster_entry(
            session,
            league_id=league.id,
            display_name="Admin",
            rating=rating,
            account_id=ADMIN_ACCOUNT_ID,
            is_admin=True,
        )
        roster_ids: dict[str, int] = {}
        for display_name, account_id in PLAYER_ACCOUNTS.items():
            entry = add_roster_entry(
                session,
                league_id=league.id,
                display_name=display_name,
                rating=rating,
                account_id=account_id,
            )
            roster_ids[display_name] = entry.id
        guest = add_roster_entry(session, league_id=league.id, display_name="guest", rating=rating)
        roster_ids["guest"] = guest.id
        league_id = league.id

    return SeededLeague(
        league_id=league_id,
        admin=Actor(account_id=ADMIN_ACCOUNT_ID, username="admin"),
        players={
            display_name: Actor(account_id=account_id, username=display_name)
            for display_name, account_id in PLAYER_ACCOUNTS.items()
        },
        roster_ids=roster_ids,
    )


def roster_rating(session_factory: sessionmaker[Session], roster_id: int) -> int:
    with session_factory() as session:
        entry = session.get(RosterEntry, roster_id)
        assert entry is not None
        return entry.rating


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_db_engine("sqlite+pysqlite:///:memory:")
    ensure_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture()
def clock() -> StepClock:
    return StepClock()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def match_service(
    session_factory: sessionmaker[Session],
    notifier: RecordingNotifier,
    clock: StepClock,
) -> MatchService:
    return MatchService(session_factory, notifier=notifier, clock=clock)


@pytest.fixture()
def consolidation_service(
    session_factory: sessionmaker[Session],
    clock: StepClock,
) -> ConsolidationService:
    return ConsolidationService(session_factory, clock=clock, lock_registry=LeagueLockRegistry())


@pytest.fixture()
def immediate_league(session_factory: sessionmaker[Session]) -> SeededLeague:
    return seed_league(session_factory, RatingUpdateMode.IMMEDIATE)


@pytest.fixture()
def periodic_league(session_factory: sessionmaker[Session]) -> SeededLeague:
    return seed_league(session_factory, RatingUpdateMode.PERIODIC)
