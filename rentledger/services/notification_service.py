"""
Notification Service
In-app notifications written alongside tenancy and payment transitions.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from rentledger.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)

FEED_LIMIT = 20


def notify(
    db: Session,
    user_id: UUID,
    title: str,
    message: str,
    type: NotificationType = NotificationType.SYSTEM,
    data: Optional[Dict[str, Any]] = None,
) -> Notification:
    """
    Stage a notification on the caller's session.
    The caller commits, so the notification lands with the transition it describes.
    """
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        data=_jsonable(data or {}),
    )
    db.add(notification)
    return notification


def _jsonable(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: str(value) if isinstance(value, UUID) else value for key, value in data.items()}


def list_notifications(
    db: Session,
    user_id: UUID,
    unread_only: bool = False,
    limit: int = FEED_LIMIT,
) -> Tuple[List[Notification], int]:
    """Latest notifications for a user plus their total unread count"""
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.read.is_(False))
    notifications = query.order_by(Notification.created_at.desc()).limit(limit).all()

    unread_count = db.query(func.count(Notification.id)).filter(
        Notification.user_id == user_id,
        Notification.read.is_(False),
    ).scalar() or 0

    return notifications, unread_count


def mark_read(db: Session, user_id: UUID, notification_id: UUID) -> int:
    """Mark one of the user's notifications read. Returns rows changed."""
    updated = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    ).update({Notification.read: True}, synchronize_session=False)
    db.commit()
    return updated


def mark_all_read(db: Session, user_id: UUID) -> int:
    updated = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.read.is_(False),
    ).update({Notification.read: True}, synchronize_session=False)
    db.commit()
    logger.info(f"Marked {updated} notifications read for {user_id}")
    return updated
