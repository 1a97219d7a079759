"""Deferred rating application for periodic leagues."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from conftest import SeededLeague, StepClock, roster_rating
from domain.accounts import Actor
from domain.errors import AuthorizationError, NotFoundError, PersistenceError, PolicyError
from domain.lifecycle import MatchLifecycle
from domain.ratings.calculator import RatingCalculator, RatingOutcome
from repositories.history import fetch_history_for_match, fetch_history_for_roster
from services.consolidation import ConsolidationService
from services.locks import LeagueLockRegistry
from services.matches import MatchService


class FlakyCalculator(RatingCalculator):
    """Fails like a lost connection on the given call number."""

    def __init__(self, fail_on_call: int) -> None:
        super().__init__()
        self.fail_on_call = fail_on_call
        self.calls = 0

    def rate(self, *args, **kwargs) -> RatingOutcome:
        self.calls += 1
        if self.calls == self.fail_on_call:
            raise OperationalError("UPDATE league_roster", {}, Exception("database is locked"))
        return super().rate(*args, **kwargs)


def _submit_and_accept(
    service: MatchService,
    league: SeededLeague,
    submitter: str,
    opponent: str,
    *,
    sets: tuple[int, int],
    points: tuple[int, int],
) -> int:
    match = service.submit_match(
        league.league_id,
        league.players[submitter],
        opponent_roster_id=league.roster_ids[opponent],
        sets=sets,
        points=points,
        match_format="best_of_5",
    )
    service.accept_match(match.id, league.admin)
    return match.id


def _seed_scenario(service: MatchService, league: SeededLeague) -> tuple[int, int]:
    first = _submit_and_accept(service, league, "alice", "bob", sets=(3, 0), points=(33, 20))
    second = _submit_and_accept(service, league, "bob", "carol", sets=(3, 1), points=(40, 35))
    return first, second


def test_periodic_accept_defers_rating(
    match_service: MatchService,
    periodic_league: SeededLeague,
    notifier,
) -> None:
    match = match_service.submit_match(
        periodic_league.league_id,
        periodic_league.players["alice"],
        opponent_roster_id=periodic_league.roster_ids["bob"],
        sets=(3, 0),
        points=(33, 20),
        match_format="best_of_5",
    )

    result = match_service.accept_match(match.id, periodic_league.admin)

    accepted = match_service.get_match(match.id)
    assert result.applied_immediately is False
    assert result.rating_deltas is None
    assert accepted.lifecycle is MatchLifecycle.AWAITING_RATING
    assert accepted.rating_applied_at is None
    assert roster_rating(match_service.session_factory, periodic_league.roster_ids["alice"]) == 1200
    assert roster_rating(match_service.session_factory, periodic_league.roster_ids["bob"]) == 1200
    with match_service.session_factory() as session:
        assert fetch_history_for_match(session, match.id) == []
    deferred = [message for message in notifier.messages if message.notification_type.value == "match_accepted_deferred"]
    assert {message.account_id for message in deferred} == {1, 2}


def test_consolidation_applies_in_acceptance_order_with_live_ratings(
    match_service: MatchService,
    consolidation_service: ConsolidationService,
    periodic_league: SeededLeague,
) -> None:
    first, second = _seed_scenario(match_service, periodic_league)

    result = consolidation_service.consolidate_league(periodic_league.league_id, periodic_league.admin)

    assert result.applied_count == 2
    assert result.match_ids == (first, second)

    session_factory = match_service.session_factory
    alice = roster_rating(session_factory, periodic_league.roster_ids["alice"])
    bob = roster_rating(session_factory, periodic_league.roster_ids["bob"])
    carol = roster_rating(session_factory, periodic_league.roster_ids["carol"])
    assert (alice, bob, carol) == (1220, 1203, 1181)

    # Bob's second match is rated from 1183, not from the 1200 snapshot taken at submission.
    second_view = match_service.get_match(second)
    assert (second_view.player1_rating_before, second_view.player1_rating_after) == (1183, 1203)
    assert (second_view.player2_rating_before, second_view.player2_rating_after) == (1200, 1181)
    assert second_view.lifecycle is MatchLifecycle.RATING_APPLIED

    with session_factory() as session:
        bob_history = fetch_history_for_roster(session, periodic_league.league_id, periodic_league.roster_ids["bob"])
        assert len(fetch_history_for_match(session, first)) == 2
        assert len(fetch_history_for_match(session, second)) == 2
    assert [(row.rating_before, row.rating_after) for row in bob_history] == [(1200, 1183), (1183, 1203)]
    assert [row.match_id for row in bob_history] == [first, second]


def test_rerun_is_a_no_op(
    match_service: MatchService,
    consolidation_service: ConsolidationService,
    periodic_league: SeededLeague,
) -> None:
    _seed_scenario(match_service, periodic_league)
    consolidation_service.consolidate_league(periodic_league.league_id, periodic_league.admin)

    result = consolidation_service.consolidate_league(periodic_league.league_id, periodic_league.admin)

    assert result.applied_count == 0
    assert result.match_ids == ()
    assert roster_rating(match_service.session_factory, periodic_league.roster_ids["bob"]) == 1203


def test_empty_league_consolidates_nothing(
    consolidation_service: ConsolidationService,
    periodic_league: SeededLeague,
) -> None:
    result = consolidation_service.consolidate_league(
        periodic_league.league_id,
        Actor(account_id=42, is_system_admin=True),
    )

    assert result.applied_count == 0


def test_pending_matches_are_not_consolidated(
    match_service: MatchService,
    consolidation_service: ConsolidationService,
    periodic_league: SeededLeague,
) -> None:
    match = match_service.submit_match(
        periodic_league.league_id,
        periodic_league.players["alice"],
        opponent_roster_id=periodic_league.roster_ids["bob"],
        sets=(1, 0),
        points=(11, 4),
        match_format="best_of_1",
    )

    assert consolidation_service.pending_consolidation(periodic_league.league_id) == []
    result = consolidation_service.consolidate_league(periodic_league.league_id, periodic_league.admin)

    assert result.applied_count == 0
    assert match_service.get_match(match.id).lifecycle is MatchLifecycle.PENDING


def test_pending_consolidation_lists_matches_in_acceptance_order(
    match_service: MatchService,
    consolidation_service: ConsolidationService,
    periodic_league: SeededLeague,
) -> None:
    later = match_service.submit_match(
        periodic_league.league_id,
        periodic_league.players["carol"],
        opponent_roster_id=periodic_league.roster_ids["alice"],
        sets=(2, 0),
        points=(22, 9),
        match_format="best_of_3",
    )
    earlier = match_service.submit_match(
        periodic_league.league_id,
        periodic_league.players["bob"],
        opponent_roster_id=periodic_league.roster_ids["alice"],
        sets=(2, 1),
        points=(28, 26),
        match_format="best_of_3",
    )
    match_service.accept_match(earlier.id, periodic_league.admin)
    match_service.accept_match(later.id, periodic_league.admin)

    assert consolidation_service.pending_consolidation(periodic_league.league_id) == [earlier.id, later.id]
    with pytest.raises(NotFoundError):
        consolidation_service.pending_consolidation(9999)


def test_consolidation_requires_league_admin(
    consolidation_service: ConsolidationService,
    periodic_league: SeededLeague,
) -> None:
    with pytest.raises(AuthorizationError):
        consolidation_service.consolidate_league(periodic_league.league_id, periodic_league.players["alice"])
    with pytest.raises(NotFoundError):
        consolidation_service.consolidate_league(9999, Actor(account_id=42, is_system_admin=True))


def test_consolidation_of_immediate_league_is_a_policy_error(
    consolidation_service: ConsolidationService,
    immediate_league: SeededLeague,
) -> None:
    with pytest.raises(PolicyError):
        consolidation_service.consolidate_league(immediate_league.league_id, immediate_league.admin)


def test_failure_keeps_committed_matches_and_rerun_resumes(
    match_service: MatchService,
    session_factory: sessionmaker[Session],
    clock: StepClock,
    periodic_league: SeededLeague,
) -> None:
    first, second = _seed_scenario(match_service, periodic_league)
    flaky = ConsolidationService(
        session_factory,
        calculator=FlakyCalculator(fail_on_call=2),
        clock=clock,
        lock_registry=LeagueLockRegistry(),
    )

    with pytest.raises(PersistenceError, match="database is locked"):
        flaky.consolidate_league(periodic_league.league_id, periodic_league.admin)

    assert match_service.get_match(first).lifecycle is MatchLifecycle.RATING_APPLIED
    assert match_service.get_match(second).lifecycle is MatchLifecycle.AWAITING_RATING
    assert roster_rating(session_factory, periodic_league.roster_ids["bob"]) == 1183
    assert roster_rating(session_factory, periodic_league.roster_ids["carol"]) == 1200
    assert flaky.pending_consolidation(periodic_league.league_id) == [second]

    result = flaky.consolidate_league(periodic_league.league_id, periodic_league.admin)

    assert result.match_ids == (second,)
    assert roster_rating(session_factory, periodic_league.roster_ids["bob"]) == 1203
    assert roster_rating(session_factory, periodic_league.roster_ids["carol"]) == 1181
