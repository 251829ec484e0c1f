from sqlmodel import select

from lms.db import get_session
from lms.errors import NotFound, PermissionDenied
from lms.models import Notification


def get_notifications(user_id: int, unread_only: bool = False):
    with get_session() as session:
        q = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            q = q.where(Notification.is_read == False)  # noqa: E712
        q = q.order_by(Notification.created_at.desc(), Notification.id.desc())
        return list(session.exec(q))


def unread_count(user_id: int) -> int:
    return len(get_notifications(user_id, unread_only=True))


def mark_read(notification_id: int, user_id: int) -> Notification:
    with get_session() as session:
        notification = session.get(Notification, notification_id)
        if not notification:
            raise NotFound("Notification not found")
        if notification.user_id != user_id:
            raise PermissionDenied("Notification owner mismatch")
        notification.is_read = True
        session.add(notification)
        session.commit()
        session.refresh(notification)
        return notification
