"""Persistence helpers for notifications."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from models import Notification


def insert_notification(
    session: Session,
    *,
    account_id: int,
    notification_type: str,
    title: str,
    message: str,
    related_match_id: int | None,
) -> Notification:
    notification = Notification(
        account_id=account_id,
        notification_type=notification_type,
        title=title,
        message=message,
        related_match_id=related_match_id,
    )
    session.add(notification)
    return notification


def fetch_notifications(session: Session, account_id: int) -> list[Notification]:
    statement = (
        select(Notification)
        .where(Notification.account_id == account_id)
        .order_by(Notification.id)
    )
    return list(session.scalars(statement))
