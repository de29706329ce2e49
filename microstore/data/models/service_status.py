from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime

from microstore.data.database import Base


class ServiceStatusModel(Base):
    __tablename__ = "service_statuses"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    status = Column(String, nullable=False)  # healthy, warning, error
    details = Column(Text, nullable=True)
    last_updated = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
