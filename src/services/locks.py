"""Per-league serialization of consolidation runs."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# First key of the two-int advisory lock; the league id is the second.
ADVISORY_LOCK_NAMESPACE = 0x4C52


class LeagueLockRegistry:
    """Hands out one lock per league id.

    In-process callers share a ``threading.Lock`` per league. On PostgreSQL a
    session-level advisory lock is also held so separate processes running
    the same league's consolidation queue up behind each other.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def lock_for(self, league_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(league_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[league_id] = lock
            return lock

    @contextmanager
    def hold(self, league_id: int, engine: Engine | None = None) -> Iterator[None]:
        with self.lock_for(league_id):
            if engine is None or engine.dialect.name != "postgresql":
                yield
                return

            params = {"namespace": ADVISORY_LOCK_NAMESPACE, "league_id": league_id}
            with engine.connect() as connection:
                connection.execute(text("SELECT pg_advisory_lock(:namespace, :league_id)"), params)
                connection.commit()
                logger.debug("advisory lock acquired league_id=%s", league_id)
                try:
                    yield
                finally:
                    connection.execute(text("SELECT pg_advisory_unlock(:namespace, :league_id)"), params)
                    connection.commit()


default_lock_registry = LeagueLockRegistry()

__all__ = ["ADVISORY_LOCK_NAMESPACE", "LeagueLockRegistry", "default_lock_registry"]
