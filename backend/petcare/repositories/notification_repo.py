from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, func, update
from sqlalchemy.exc import SQLAlchemyError

from petcare.db.base import Notification as DbNotification
from petcare.domain.entities import Notification as DomainNotification
from petcare.domain.entities import NotificationType
from petcare.domain.interfaces import INotificationRepository


class NotificationRepository(INotificationRepository):
    """Repository for in-app notifications."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, notification_id: str) -> Optional[DomainNotification]:
        db_notification = self.db.get(DbNotification, str(notification_id))
        return self._to_domain(db_notification) if db_notification else None

    def get_by_user(self, user_id: str) -> List[DomainNotification]:
        rows = (
            self.db.query(DbNotification)
            .filter_by(user_id=str(user_id))
            .order_by(DbNotification.created_at.desc())
            .all()
        )
        return [self._to_domain(row) for row in rows]

    def get_unread_count(self, user_id: str) -> int:
        return (
            self.db.query(func.count(DbNotification.id))
            .filter(
                DbNotification.user_id == str(user_id),
                DbNotification.is_read.is_(False),
            )
            .scalar()
            or 0
        )

    def create(self, notification: DomainNotification) -> DomainNotification:
        db_notification = DbNotification(
            id=notification.id,
            user_id=str(notification.user_id),
            type=notification.type.value,
            title=notification.title,
            message=notification.message,
            data=notification.data,
            is_read=notification.is_read,
            read_at=notification.read_at,
            created_at=notification.created_at,
        )
        try:
            self.db.add(db_notification)
            self.db.commit()
        except SQLAlchemyError:
            # Shared session must stay usable after a failed insert
            self.db.rollback()
            raise
        self.db.refresh(db_notification)
        return self._to_domain(db_notification)

    def update(self, notification: DomainNotification) -> DomainNotification:
        db_notification = self.db.get(DbNotification, str(notification.id))
        if db_notification is None:
            raise ValueError(f"Notification {notification.id} not found")
        db_notification.is_read = notification.is_read
        db_notification.read_at = notification.read_at
        self.db.commit()
        self.db.refresh(db_notification)
        return self._to_domain(db_notification)

    def mark_all_as_read(self, user_id: str, when: datetime) -> int:
        result = self.db.execute(
            update(DbNotification)
            .where(
                DbNotification.user_id == str(user_id),
                DbNotification.is_read.is_(False),
            )
            .values(is_read=True, read_at=when)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount or 0

    def delete_older_than(self, cutoff: datetime) -> int:
        result = self.db.execute(
            delete(DbNotification)
            .where(DbNotification.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount or 0

    def _to_domain(self, db_notification: DbNotification) -> DomainNotification:
        return DomainNotification(
            id=db_notification.id,
            user_id=db_notification.user_id,
            type=NotificationType(db_notification.type),
            title=db_notification.title,
            message=db_notification.message,
            data=db_notification.data,
            is_read=db_notification.is_read,
            read_at=db_notification.read_at,
            created_at=db_notification.created_at,
        )
