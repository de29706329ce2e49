from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from microstore.data.models.service_status import ServiceStatusModel


class ServiceStatusRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_status(self, name: str) -> ServiceStatusModel | None:
        return self.db.execute(
            select(ServiceStatusModel).where(ServiceStatusModel.name == name)
        ).scalar_one_or_none()

    def list_statuses(self) -> list[ServiceStatusModel]:
        return list(self.db.execute(select(ServiceStatusModel).order_by(ServiceStatusModel.id)).scalars())

    def upsert_status(self, name: str, status: str, details: str | None = None) -> ServiceStatusModel:
        existing = self.get_status(name)
        now = datetime.now(timezone.utc)

        if existing:
            existing.status = status
            # puste details nie nadpisuja poprzednich
            existing.details = details or existing.details
            existing.last_updated = now
            self.db.commit()
            return existing

        created = ServiceStatusModel(name=name, status=status, details=details, last_updated=now)
        self.db.add(created)
        self.db.commit()
        self.db.refresh(created)
        return created
