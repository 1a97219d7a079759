from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from repositories.notifications import fetch_notifications
from services.notifications import (
    DatabaseNotifier,
    NotificationMessage,
    NotificationType,
    Notifier,
    RecordingNotifier,
    dispatch,
    format_delta,
)


def _message(account_id: int, match_id: int | None = 11) -> NotificationMessage:
    return NotificationMessage(
        account_id=account_id,
        notification_type=NotificationType.MATCH_ACCEPTED,
        title="Match Accepted",
        message="Rating change: +12",
        related_match_id=match_id,
    )


class FailingForAccount:
    def __init__(self, failing_account_id: int) -> None:
        self.failing_account_id = failing_account_id
        self.delivered: list[NotificationMessage] = []

    def notify(self, message: NotificationMessage) -> None:
        if message.account_id == self.failing_account_id:
            raise RuntimeError("inbox unavailable")
        self.delivered.append(message)


def test_dispatch_continues_after_a_failure(caplog) -> None:
    notifier = FailingForAccount(failing_account_id=1)

    delivered = dispatch(notifier, [_message(1), _message(2)])

    assert delivered == 1
    assert [message.account_id for message in notifier.delivered] == [2]
    assert "notification delivery failed account_id=1" in caplog.text


def test_dispatch_without_notifier_is_a_no_op() -> None:
    assert dispatch(None, [_message(1)]) == 0


def test_notifiers_satisfy_protocol(session_factory: sessionmaker[Session]) -> None:
    assert isinstance(RecordingNotifier(), Notifier)
    assert isinstance(DatabaseNotifier(session_factory), Notifier)


def test_database_notifier_persists_rows(session_factory: sessionmaker[Session]) -> None:
    notifier = DatabaseNotifier(session_factory)

    dispatch(notifier, [_message(5), _message(5, match_id=None), _message(6)])

    with session_factory() as session:
        rows = fetch_notifications(session, 5)
    assert len(rows) == 2
    assert {row.related_match_id for row in rows} == {11, None}
    assert all(row.notification_type == "match_accepted" for row in rows)
    assert all(row.is_read is False for row in rows)


def test_format_delta_signs_gains() -> None:
    assert format_delta(12) == "+12"
    assert format_delta(0) == "0"
    assert format_delta(-7) == "-7"
