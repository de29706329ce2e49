from sqlalchemy import select
from sqlalchemy.orm import Session

from microstore.data.models.notification import NotificationModel


class NotificationRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_notification(self, notification: NotificationModel) -> NotificationModel:
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def get_by_recipient(self, recipient_id: int) -> list[NotificationModel]:
        return list(
            self.db.execute(
                select(NotificationModel)
                .where(NotificationModel.recipient_id == recipient_id)
                .order_by(NotificationModel.id)
            ).scalars()
        )
