"""league_roster table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from domain.ratings.calculator import DEFAULT_INITIAL_RATING
from models.base import Base


class RosterEntry(Base):
    """Participant slot in a league; a null account_id marks a placeholder."""

    __tablename__ = "league_roster"
    __table_args__ = (
        UniqueConstraint("league_id", "account_id", name="uq_league_roster_league_account"),
        Index("idx_league_roster_league_rating", "league_id", "rating"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    league_id: Mapped[int] = mapped_column(ForeignKey("leagues.id"), nullable=False)
    account_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_INITIAL_RATING)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )

    @property
    def is_placeholder(self) -> bool:
        return self.account_id is None
