"""matches and match_sets table models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from domain.lifecycle import MatchLifecycle, MatchStatus
from domain.ratings.formats import MatchFormat
from models.base import Base
from models.mixins import CreatedAtMixin, enum_values


class Match(CreatedAtMixin, Base):
    """One submitted contest between two roster entries of a league."""

    __tablename__ = "matches"
    __table_args__ = (
        CheckConstraint("player1_roster_id <> player2_roster_id", name="ck_matches_distinct_players"),
        CheckConstraint(
            "NOT rating_applied OR status = 'accepted'",
            name="ck_matches_rating_applied_requires_accepted",
        ),
        CheckConstraint(
            "player1_sets_won >= 0 AND player2_sets_won >= 0",
            name="ck_matches_sets_non_negative",
        ),
        CheckConstraint(
            "player1_points_total >= 0 AND player2_points_total >= 0",
            name="ck_matches_points_non_negative",
        ),
        Index("idx_matches_league_status", "league_id", "status", "rating_applied", "accepted_at"),
        Index("idx_matches_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    league_id: Mapped[int] = mapped_column(ForeignKey("leagues.id"), nullable=False)
    player1_roster_id: Mapped[int] = mapped_column(ForeignKey("league_roster.id"), nullable=False)
    player2_roster_id: Mapped[int] = mapped_column(ForeignKey("league_roster.id"), nullable=False)
    winner_roster_id: Mapped[int] = mapped_column(ForeignKey("league_roster.id"), nullable=False)
    submitted_by: Mapped[int] = mapped_column(Integer, nullable=False)
    player1_sets_won: Mapped[int] = mapped_column(Integer, nullable=False)
    player2_sets_won: Mapped[int] = mapped_column(Integer, nullable=False)
    player1_points_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    player2_points_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    match_format: Mapped[MatchFormat] = mapped_column(
        Enum(MatchFormat, name="match_format", native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
    )
    status: Mapped[MatchStatus] = mapped_column(
        Enum(MatchStatus, name="match_status", native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
        default=MatchStatus.PENDING,
    )
    accepted_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    rating_applied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    rating_applied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    player1_rating_before: Mapped[int] = mapped_column(Integer, nullable=False)
    player2_rating_before: Mapped[int] = mapped_column(Integer, nullable=False)
    player1_rating_after: Mapped[int] = mapped_column(Integer, nullable=False)
    player2_rating_after: Mapped[int] = mapped_column(Integer, nullable=False)
    played_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    sets: Mapped[list[MatchSet]] = relationship(
        back_populates="match",
        cascade="all, delete-orphan",
        order_by="MatchSet.set_number",
    )

    @property
    def lifecycle(self) -> MatchLifecycle:
        return MatchLifecycle.from_record(self.status, self.rating_applied)

    @property
    def roster_ids(self) -> tuple[int, int]:
        return self.player1_roster_id, self.player2_roster_id


class MatchSet(Base):
    """Optional per-set score detail for a match."""

    __tablename__ = "match_sets"
    __table_args__ = (
        UniqueConstraint("match_id", "set_number", name="uq_match_sets_match_set"),
        CheckConstraint(
            "player1_score >= 0 AND player2_score >= 0",
            name="ck_match_sets_scores_non_negative",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    match_id: Mapped[int] = mapped_column(ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    set_number: Mapped[int] = mapped_column(Integer, nullable=False)
    player1_score: Mapped[int] = mapped_column(Integer, nullable=False)
    player2_score: Mapped[int] = mapped_column(Integer, nullable=False)

    match: Mapped[Match] = relationship(back_populates="sets")
