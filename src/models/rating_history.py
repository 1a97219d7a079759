"""rating_history table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class RatingHistory(Base):
    """Append-only rating change (one row per roster entry per applied match)."""

    __tablename__ = "rating_history"
    __table_args__ = (
        UniqueConstraint("match_id", "roster_id", name="uq_rating_history_match_roster"),
        Index("idx_rating_history_league_roster", "league_id", "roster_id", "recorded_at"),
        Index("idx_rating_history_match", "match_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    league_id: Mapped[int] = mapped_column(ForeignKey("leagues.id"), nullable=False)
    roster_id: Mapped[int] = mapped_column(ForeignKey("league_roster.id"), nullable=False)
    account_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    match_id: Mapped[int] = mapped_column(ForeignKey("matches.id"), nullable=False)
    rating_before: Mapped[int] = mapped_column(Integer, nullable=False)
    rating_after: Mapped[int] = mapped_column(Integer, nullable=False)
    rating_delta: Mapped[int] = mapped_column(Integer, nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
