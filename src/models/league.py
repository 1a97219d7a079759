"""leagues table model."""

from __future__ import annotations

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from domain.lifecycle import RatingUpdateMode
from models.base import Base
from models.mixins import CreatedAtMixin, enum_values


class League(CreatedAtMixin, Base):
    """A league; only its rating policy matters to the rating core."""

    __tablename__ = "leagues"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    rating_update_mode: Mapped[RatingUpdateMode] = mapped_column(
        Enum(
            RatingUpdateMode,
            name="rating_update_mode",
            native_enum=False,
            values_callable=enum_values,
            length=20,
        ),
        nullable=False,
        default=RatingUpdateMode.IMMEDIATE,
    )
