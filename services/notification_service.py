from sqlalchemy.orm import Session

import crud
from models import Notification
from schemas import NotificationCreate

MAX_NOTIFICATIONS = 50


class NotificationService:

    @staticmethod
    def for_user(db: Session, user_id: int):
        return crud.list_rows(db, Notification, {"user_id": user_id}, order_by="created_at",
                              descending=True, limit=MAX_NOTIFICATIONS)

    @staticmethod
    def unread_count(db: Session, user_id: int) -> int:
        return crud.count_rows(db, Notification, {"user_id": user_id, "read": False})

    @staticmethod
    def mark_as_read(db: Session, notification_id: int):
        return crud.update_row(db, Notification, notification_id, {"read": True})

    @staticmethod
    def mark_all_as_read(db: Session, user_id: int) -> int:
        return crud.update_rows(db, Notification, {"user_id": user_id, "read": False}, {"read": True})

    @staticmethod
    def create(db: Session, data: NotificationCreate):
        return crud.create_row(db, Notification, data.model_dump())

    @staticmethod
    def delete(db: Session, notification_id: int):
        crud.delete_row(db, Notification, notification_id)

    @staticmethod
    def subscribe(user_id: int, on_change):
        return crud.subscribe(Notification, on_change, event="INSERT", row_filter={"user_id": user_id})
