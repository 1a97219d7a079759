"""Notification dispatch for match lifecycle events.

Messages are handed to a notifier after the owning transaction commits.
Delivery is best effort: a failing notifier never rolls back rating work.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from sqlalchemy.orm import Session, sessionmaker

from repositories.notifications import insert_notification

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    MATCH_REQUEST = "match_request"
    MATCH_ACCEPTED = "match_accepted"
    MATCH_ACCEPTED_DEFERRED = "match_accepted_deferred"
    MATCH_REJECTED = "match_rejected"


@dataclass(frozen=True)
class NotificationMessage:
    account_id: int
    notification_type: NotificationType
    title: str
    message: str
    related_match_id: int | None = None


@runtime_checkable
class Notifier(Protocol):
    def notify(self, message: NotificationMessage) -> None: ...


class DatabaseNotifier:
    """Persist notifications as rows in the notifications table."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def notify(self, message: NotificationMessage) -> None:
        with self.session_factory() as session, session.begin():
            insert_notification(
                session,
                account_id=message.account_id,
                notification_type=message.notification_type.value,
                title=message.title,
                message=message.message,
                related_match_id=message.related_match_id,
            )


class RecordingNotifier:
    """Keep messages in memory."""

    def __init__(self) -> None:
        self.messages: list[NotificationMessage] = []

    def notify(self, message: NotificationMessage) -> None:
        self.messages.append(message)

    def for_account(self, account_id: int) -> list[NotificationMessage]:
        return [message for message in self.messages if message.account_id == account_id]


def dispatch(notifier: Notifier | None, messages: Iterable[NotificationMessage]) -> int:
    """Send messages one by one; returns how many were handed off."""
    if notifier is None:
        return 0

    delivered = 0
    for message in messages:
        try:
            notifier.notify(message)
        except Exception:
            logger.warning(
                "notification delivery failed account_id=%s type=%s match_id=%s",
                message.account_id,
                message.notification_type.value,
                message.related_match_id,
                exc_info=True,
            )
            continue
        delivered += 1
    return delivered


def format_delta(delta: int) -> str:
    return f"+{delta}" if delta > 0 else str(delta)


__all__ = [
    "DatabaseNotifier",
    "NotificationMessage",
    "NotificationType",
    "Notifier",
    "RecordingNotifier",
    "dispatch",
    "format_delta",
]
