from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON

from microstore.data.database import Base


class NotificationModel(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    recipient_id = Column(Integer, nullable=False, index=True)
    type = Column(String(10), nullable=False)  # email, sms, push
    subject = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(10), nullable=False, default="pending")
    sent_at = Column(DateTime(timezone=True), nullable=True)
    # "metadata" jest zarezerwowane w declarative
    meta = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
