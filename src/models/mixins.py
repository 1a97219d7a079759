"""SQLAlchemy mixins for columns shared across league tables."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column


class CreatedAtMixin:
    """Server-stamped creation time."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )


def enum_values(enum_cls: type) -> list[str]:
    """Persist enum values (not member names) in string columns."""
    return [member.value for member in enum_cls]
