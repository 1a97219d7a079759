"""Deferred rating consolidation for periodic-policy leagues."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from domain.accounts import Actor
from domain.errors import AuthorizationError, LeagueRatingError, PolicyError
from domain.lifecycle import RatingUpdateMode
from domain.ratings.calculator import RatingCalculator
from repositories.leagues import get_league
from repositories.matches import fetch_unapplied_match_ids, get_match
from repositories.roster import is_league_admin
from services.clock import Clock, utc_now
from services.locks import LeagueLockRegistry, default_lock_registry
from services.rating_application import AppliedRating, apply_match_rating
from services.unit_of_work import read_session, transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsolidationResult:
    league_id: int
    applied_count: int
    match_ids: tuple[int, ...] = field(default_factory=tuple)


class ConsolidationService:
    """Apply a league's accepted-but-unrated matches in acceptance order.

    Each match is rated in its own transaction against the ratings committed
    by the previous step. A failure stops the run; matches already committed
    stay applied and a rerun picks up the remainder.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        calculator: RatingCalculator | None = None,
        clock: Clock | None = None,
        lock_registry: LeagueLockRegistry | None = None,
        engine: Engine | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.calculator = calculator or RatingCalculator()
        self.clock = clock or utc_now
        self.lock_registry = lock_registry or default_lock_registry
        self.engine = engine if engine is not None else session_factory.kw.get("bind")

    def consolidate_league(self, league_id: int, actor: Actor) -> ConsolidationResult:
        self._check_preconditions(league_id, actor)
        logger.info("consolidation requested league_id=%s by account_id=%s", league_id, actor.account_id)

        with self.lock_registry.hold(league_id, self.engine):
            with self.session_factory() as session:
                match_ids = fetch_unapplied_match_ids(session, league_id)

            if not match_ids:
                logger.info("nothing to consolidate league_id=%s", league_id)
                return ConsolidationResult(league_id=league_id, applied_count=0)

            logger.info("consolidating league_id=%s matches=%s", league_id, len(match_ids))
            applied_ids: list[int] = []
            for match_id in match_ids:
                try:
                    applied = self._apply_one(match_id)
                except LeagueRatingError:
                    logger.exception(
                        "consolidation aborted league_id=%s match_id=%s applied_before_failure=%s",
                        league_id,
                        match_id,
                        len(applied_ids),
                    )
                    raise
                if applied is None:
                    continue
                applied_ids.append(match_id)
                logger.debug(
                    "consolidated match_id=%s ratings=%s->%s deltas=%s",
                    match_id,
                    (applied.outcome.rating_a, applied.outcome.rating_b),
                    (applied.outcome.new_rating_a, applied.outcome.new_rating_b),
                    applied.deltas,
                )

        logger.info("consolidation completed league_id=%s applied=%s", league_id, len(applied_ids))
        return ConsolidationResult(
            league_id=league_id,
            applied_count=len(applied_ids),
            match_ids=tuple(applied_ids),
        )

    def pending_consolidation(self, league_id: int) -> list[int]:
        """Match ids the next consolidation run would apply, in order."""
        with read_session(self.session_factory, "list pending consolidation") as session:
            get_league(session, league_id)
            return fetch_unapplied_match_ids(session, league_id)

    def _check_preconditions(self, league_id: int, actor: Actor) -> None:
        with read_session(self.session_factory, "consolidation precheck") as session:
            if not actor.is_system_admin and not is_league_admin(session, league_id, actor.account_id):
                raise AuthorizationError("League admin access required")
            league = get_league(session, league_id)
            if league.rating_update_mode is RatingUpdateMode.IMMEDIATE:
                raise PolicyError(
                    f"League {league_id} applies ratings immediately; there is nothing to consolidate"
                )

    def _apply_one(self, match_id: int) -> AppliedRating | None:
        with transaction(self.session_factory, f"consolidate match {match_id}") as session:
            match = get_match(session, match_id, for_update=True)
            if match.rating_applied:
                # Applied by another path since the batch was selected.
                return None
            return apply_match_rating(session, match, self.calculator, applied_at=self.clock())


__all__ = ["ConsolidationResult", "ConsolidationService"]
