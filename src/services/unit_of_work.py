"""Session scopes shared by the services."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from domain.errors import PersistenceError


@contextmanager
def transaction(session_factory: sessionmaker[Session], action: str) -> Iterator[Session]:
    """Commit on success, roll back on any exception.

    Store failures surface as ``PersistenceError``; domain errors propagate
    unchanged after the rollback.
    """
    try:
        with session_factory() as session, session.begin():
            yield session
    except SQLAlchemyError as exc:
        raise PersistenceError(f"{action} failed: {exc}") from exc


@contextmanager
def read_session(session_factory: sessionmaker[Session], action: str) -> Iterator[Session]:
    """Session for read-only work with the same error mapping as ``transaction``."""
    try:
        with session_factory() as session:
            yield session
    except SQLAlchemyError as exc:
        raise PersistenceError(f"{action} failed: {exc}") from exc


__all__ = ["read_session", "transaction"]
