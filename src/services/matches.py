"""Match submission, editing and acceptance."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session, sessionmaker

from domain.accounts import Actor
from domain.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from domain.lifecycle import MatchLifecycle, MatchStatus, RatingUpdateMode
from domain.ratings.calculator import RatingCalculator
from domain.ratings.formats import MatchFormat
from domain.ratings.validation import validate_match_result, validate_points, validate_set_scores
from models import Match, RosterEntry
from repositories.leagues import get_league
from repositories.matches import add_match, delete_match, fetch_pending_matches, get_match, replace_set_scores
from repositories.roster import fetch_leaderboard, get_roster_by_account, get_roster_by_id, is_league_admin
from services.clock import Clock, utc_now
from services.notifications import NotificationMessage, NotificationType, Notifier, dispatch, format_delta
from services.rating_application import apply_match_rating
from services.unit_of_work import read_session, transaction

logger = logging.getLogger(__name__)

ScorePair = tuple[int, int]


@dataclass(frozen=True)
class MatchView:
    """Detached snapshot of a match record."""

    id: int
    league_id: int
    player1_roster_id: int
    player2_roster_id: int
    winner_roster_id: int
    submitted_by: int
    player1_sets_won: int
    player2_sets_won: int
    player1_points_total: int
    player2_points_total: int
    match_format: MatchFormat
    status: MatchStatus
    lifecycle: MatchLifecycle
    rating_applied: bool
    accepted_by: int | None
    accepted_at: datetime | None
    rating_applied_at: datetime | None
    player1_rating_before: int
    player2_rating_before: int
    player1_rating_after: int
    player2_rating_after: int
    played_at: datetime | None
    set_scores: tuple[ScorePair, ...]

    @classmethod
    def from_model(cls, match: Match) -> MatchView:
        return cls(
            id=match.id,
            league_id=match.league_id,
            player1_roster_id=match.player1_roster_id,
            player2_roster_id=match.player2_roster_id,
            winner_roster_id=match.winner_roster_id,
            submitted_by=match.submitted_by,
            player1_sets_won=match.player1_sets_won,
            player2_sets_won=match.player2_sets_won,
            player1_points_total=match.player1_points_total,
            player2_points_total=match.player2_points_total,
            match_format=match.match_format,
            status=match.status,
            lifecycle=match.lifecycle,
            rating_applied=match.rating_applied,
            accepted_by=match.accepted_by,
            accepted_at=match.accepted_at,
            rating_applied_at=match.rating_applied_at,
            player1_rating_before=match.player1_rating_before,
            player2_rating_before=match.player2_rating_before,
            player1_rating_after=match.player1_rating_after,
            player2_rating_after=match.player2_rating_after,
            played_at=match.played_at,
            set_scores=tuple((row.player1_score, row.player2_score) for row in match.sets),
        )

    @property
    def rating_deltas(self) -> ScorePair:
        """Preview while pending; authoritative once the rating is applied."""
        return (
            self.player1_rating_after - self.player1_rating_before,
            self.player2_rating_after - self.player2_rating_before,
        )


@dataclass(frozen=True)
class AcceptResult:
    match_id: int
    applied_immediately: bool
    rating_deltas: ScorePair | None = None


@dataclass(frozen=True)
class RatingPreview:
    current_ratings: ScorePair
    projected_ratings: ScorePair
    rating_deltas: ScorePair
    expected_score: float
    points_factors: tuple[float, float]
    format_multiplier: float


@dataclass(frozen=True)
class LeaderboardRow:
    rank: int
    roster_id: int
    display_name: str
    rating: int
    account_id: int | None

    @property
    def is_placeholder(self) -> bool:
        return self.account_id is None


def _score_pair(value: Sequence[int], label: str) -> ScorePair:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)) or len(value) != 2:
        raise ValidationError(f"{label} must be a pair of integers, got {value!r}")
    return value[0], value[1]


class MatchService:
    """Match Record lifecycle and the Acceptance Controller."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        calculator: RatingCalculator | None = None,
        notifier: Notifier | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.calculator = calculator or RatingCalculator()
        self.notifier = notifier
        self.clock = clock or utc_now

    def submit_match(
        self,
        league_id: int,
        actor: Actor,
        *,
        opponent_roster_id: int,
        sets: Sequence[int],
        points: Sequence[int],
        match_format: MatchFormat | str,
        set_scores: Sequence[ScorePair] = (),
        played_at: datetime | None = None,
    ) -> MatchView:
        sets_1, sets_2 = _score_pair(sets, "sets")
        points_1, points_2 = _score_pair(points, "points")
        parsed_format = validate_match_result(sets_1, sets_2, match_format)
        validate_points(points_1, points_2)
        validate_set_scores(set_scores, parsed_format)

        messages: list[NotificationMessage] = []
        with transaction(self.session_factory, "submit match") as session:
            league = get_league(session, league_id)
            submitter = get_roster_by_account(session, league_id, actor.account_id)
            if submitter is None:
                raise AuthorizationError(f"{actor.label} is not a member of league {league_id}")
            opponent = get_roster_by_id(session, league_id, opponent_roster_id)
            if opponent is None:
                raise NotFoundError(
                    f"Opponent roster entry {opponent_roster_id} is not in league {league_id}"
                )
            if opponent.id == submitter.id:
                raise ValidationError("A match needs two different roster entries")

            player1_won = sets_1 > sets_2
            preview = self.calculator.rate(
                submitter.rating,
                opponent.rating,
                points_1,
                points_2,
                player1_won,
                sets_1,
                sets_2,
            )
            match = add_match(
                session,
                Match(
                    league_id=league_id,
                    player1_roster_id=submitter.id,
                    player2_roster_id=opponent.id,
                    winner_roster_id=submitter.id if player1_won else opponent.id,
                    submitted_by=actor.account_id,
                    player1_sets_won=sets_1,
                    player2_sets_won=sets_2,
                    player1_points_total=points_1,
                    player2_points_total=points_2,
                    match_format=parsed_format,
                    status=MatchStatus.PENDING,
                    rating_applied=False,
                    player1_rating_before=submitter.rating,
                    player2_rating_before=opponent.rating,
                    player1_rating_after=preview.new_rating_a,
                    player2_rating_after=preview.new_rating_b,
                    played_at=played_at,
                ),
            )
            replace_set_scores(session, match, set_scores)
            session.flush()
            view = MatchView.from_model(match)

            if opponent.account_id is not None:
                messages.append(
                    NotificationMessage(
                        account_id=opponent.account_id,
                        notification_type=NotificationType.MATCH_REQUEST,
                        title="New Match Result",
                        message=f'{actor.label} has submitted a match result in "{league.name}"',
                        related_match_id=match.id,
                    )
                )

        logger.info(
            "match submitted match_id=%s league_id=%s format=%s sets=%s-%s",
            view.id,
            league_id,
            parsed_format.value,
            sets_1,
            sets_2,
        )
        dispatch(self.notifier, messages)
        return view

    def edit_match(
        self,
        match_id: int,
        actor: Actor,
        *,
        sets: Sequence[int],
        points: Sequence[int],
        match_format: MatchFormat | str,
        set_scores: Sequence[ScorePair] | None = None,
    ) -> MatchView:
        """Correct a pending result; only its participants may do so."""
        with transaction(self.session_factory, "edit match") as session:
            match = get_match(session, match_id, for_update=True)
            if match.status is not MatchStatus.PENDING:
                raise InvalidStateError(f"Cannot edit match {match_id}: it is already accepted")
            if not self._is_participant(session, match, actor):
                raise AuthorizationError("Only match participants can edit the match")

            sets_1, sets_2 = _score_pair(sets, "sets")
            points_1, points_2 = _score_pair(points, "points")
            parsed_format = validate_match_result(sets_1, sets_2, match_format)
            validate_points(points_1, points_2)
            if set_scores is not None:
                validate_set_scores(set_scores, parsed_format)

            player1_won = sets_1 > sets_2
            preview = self.calculator.rate(
                match.player1_rating_before,
                match.player2_rating_before,
                points_1,
                points_2,
                player1_won,
                sets_1,
                sets_2,
            )
            match.player1_sets_won = sets_1
            match.player2_sets_won = sets_2
            match.player1_points_total = points_1
            match.player2_points_total = points_2
            match.match_format = parsed_format
            match.winner_roster_id = match.player1_roster_id if player1_won else match.player2_roster_id
            match.player1_rating_after = preview.new_rating_a
            match.player2_rating_after = preview.new_rating_b
            if set_scores is not None:
                replace_set_scores(session, match, set_scores)
            elif len(match.sets) > parsed_format.max_sets:
                # Kept set scores must still fit the edited format.
                replace_set_scores(session, match, ())
            session.flush()
            view = MatchView.from_model(match)

        logger.info("match edited match_id=%s by account_id=%s", match_id, actor.account_id)
        return view

    def accept_match(self, match_id: int, actor: Actor) -> AcceptResult:
        """Accept a pending match, applying ratings now or deferring them per league policy.

        The ratings stored at submission are a preview only. Applying the
        rating re-reads both roster entries and replaces the before and after
        values on the match with the ones actually used.
        """
        messages: list[NotificationMessage] = []
        with transaction(self.session_factory, "accept match") as session:
            match = get_match(session, match_id, for_update=True)
            if match.status is not MatchStatus.PENDING:
                raise InvalidStateError(f"Match {match_id} is already accepted")
            self._require_league_admin(session, match.league_id, actor)
            league = get_league(session, match.league_id)

            now = self.clock()
            match.status = MatchStatus.ACCEPTED
            match.accepted_by = actor.account_id
            match.accepted_at = now
            session.flush()

            if league.rating_update_mode is RatingUpdateMode.IMMEDIATE:
                applied = apply_match_rating(session, match, self.calculator, applied_at=now)
                result = AcceptResult(
                    match_id=match_id,
                    applied_immediately=True,
                    rating_deltas=applied.deltas,
                )
                for entry, delta in zip((applied.player1, applied.player2), applied.deltas):
                    if entry.account_id is None:
                        continue
                    messages.append(
                        NotificationMessage(
                            account_id=entry.account_id,
                            notification_type=NotificationType.MATCH_ACCEPTED,
                            title="Match Accepted",
                            message=(
                                f'Your match result in "{league.name}" has been accepted. '
                                f"Rating change: {format_delta(delta)}"
                            ),
                            related_match_id=match_id,
                        )
                    )
            else:
                result = AcceptResult(match_id=match_id, applied_immediately=False)
                for entry in self._roster_entries(session, match):
                    if entry.account_id is None:
                        continue
                    messages.append(
                        NotificationMessage(
                            account_id=entry.account_id,
                            notification_type=NotificationType.MATCH_ACCEPTED_DEFERRED,
                            title="Match Accepted (Deferred Rating)",
                            message=(
                                f'Your match in "{league.name}" was accepted. '
                                "Your rating will change at the next consolidation."
                            ),
                            related_match_id=match_id,
                        )
                    )

        logger.info(
            "match accepted match_id=%s by account_id=%s applied_immediately=%s deltas=%s",
            match_id,
            actor.account_id,
            result.applied_immediately,
            result.rating_deltas,
        )
        dispatch(self.notifier, messages)
        return result

    def reject_match(self, match_id: int, actor: Actor, reason: str | None = None) -> None:
        """Reject a pending match. The record is deleted, not kept as rejected."""
        messages: list[NotificationMessage] = []
        with transaction(self.session_factory, "reject match") as session:
            match = get_match(session, match_id, for_update=True)
            if match.status is not MatchStatus.PENDING:
                raise InvalidStateError(f"Cannot reject match {match_id}: it is already accepted")
            self._require_league_admin(session, match.league_id, actor)
            league = get_league(session, match.league_id)

            text = f'Your match result in "{league.name}" has been rejected'
            if reason:
                text = f"{text}: {reason}"
            for entry in self._roster_entries(session, match):
                if entry.account_id is None:
                    continue
                messages.append(
                    NotificationMessage(
                        account_id=entry.account_id,
                        notification_type=NotificationType.MATCH_REJECTED,
                        title="Match Rejected",
                        message=text,
                    )
                )
            delete_match(session, match)

        logger.info("match rejected match_id=%s by account_id=%s", match_id, actor.account_id)
        dispatch(self.notifier, messages)

    def delete_match(self, match_id: int, actor: Actor) -> None:
        if not actor.is_system_admin:
            raise AuthorizationError("System admin access required")
        with transaction(self.session_factory, "delete match") as session:
            match = get_match(session, match_id, for_update=True)
            if match.status is not MatchStatus.PENDING:
                raise InvalidStateError(f"Cannot delete match {match_id}: it is already accepted")
            delete_match(session, match)
        logger.info("match deleted match_id=%s by account_id=%s", match_id, actor.account_id)

    def get_match(self, match_id: int) -> MatchView:
        with read_session(self.session_factory, "get match") as session:
            return MatchView.from_model(get_match(session, match_id))

    def pending_matches(self, actor: Actor) -> list[MatchView]:
        """Approval queue: pending matches the actor may accept or reject, oldest first.

        System admins see every league; anyone else sees the leagues they
        administer, which is an empty list for plain members.
        """
        admin_account_id = None if actor.is_system_admin else actor.account_id
        with read_session(self.session_factory, "list pending matches") as session:
            matches = fetch_pending_matches(session, admin_account_id=admin_account_id)
            return [MatchView.from_model(match) for match in matches]

    def preview_rating(
        self,
        league_id: int,
        actor: Actor,
        *,
        opponent_roster_id: int,
        sets: Sequence[int],
        points: Sequence[int] = (0, 0),
    ) -> RatingPreview:
        """Project rating changes for a hypothetical result without writing anything."""
        sets_1, sets_2 = _score_pair(sets, "sets")
        points_1, points_2 = _score_pair(points, "points")
        try:
            inferred_format = MatchFormat.from_sets_won(sets_1, sets_2)
        except (TypeError, ValueError):
            raise ValidationError(f"Sets {sets_1}-{sets_2} do not match any match format") from None
        validate_match_result(sets_1, sets_2, inferred_format)
        validate_points(points_1, points_2)

        with read_session(self.session_factory, "preview rating") as session:
            player = get_roster_by_account(session, league_id, actor.account_id)
            opponent = get_roster_by_id(session, league_id, opponent_roster_id)
            if player is None or opponent is None:
                raise NotFoundError(f"One or both players are not roster members of league {league_id}")
            current = (player.rating, opponent.rating)

        outcome = self.calculator.rate(
            current[0],
            current[1],
            points_1,
            points_2,
            sets_1 > sets_2,
            sets_1,
            sets_2,
        )
        return RatingPreview(
            current_ratings=current,
            projected_ratings=(outcome.new_rating_a, outcome.new_rating_b),
            rating_deltas=(outcome.delta_a, outcome.delta_b),
            expected_score=outcome.expected_score_a,
            points_factors=(outcome.points_factor_a, outcome.points_factor_b),
            format_multiplier=outcome.format_multiplier,
        )

    def leaderboard(self, league_id: int) -> list[LeaderboardRow]:
        """Rank roster entries by stored rating; equal ratings share a rank."""
        with read_session(self.session_factory, "leaderboard") as session:
            get_league(session, league_id)
            entries = fetch_leaderboard(session, league_id)

        rows: list[LeaderboardRow] = []
        rank = 0
        previous_rating: int | None = None
        for position, entry in enumerate(entries, start=1):
            if entry.rating != previous_rating:
                rank = position
                previous_rating = entry.rating
            rows.append(
                LeaderboardRow(
                    rank=rank,
                    roster_id=entry.id,
                    display_name=entry.display_name,
                    rating=entry.rating,
                    account_id=entry.account_id,
                )
            )
        return rows

    def _require_league_admin(self, session: Session, league_id: int, actor: Actor) -> None:
        if actor.is_system_admin:
            return
        if not is_league_admin(session, league_id, actor.account_id):
            raise AuthorizationError("League admin access required")

    def _is_participant(self, session: Session, match: Match, actor: Actor) -> bool:
        return any(entry.account_id == actor.account_id for entry in self._roster_entries(session, match))

    def _roster_entries(self, session: Session, match: Match) -> list[RosterEntry]:
        entries = []
        for roster_id in match.roster_ids:
            entry = get_roster_by_id(session, match.league_id, roster_id)
            if entry is not None:
                entries.append(entry)
        return entries


__all__ = [
    "AcceptResult",
    "LeaderboardRow",
    "MatchService",
    "MatchView",
    "RatingPreview",
]
