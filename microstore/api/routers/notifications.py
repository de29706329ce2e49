# microstore/api/routers/notifications.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from microstore.api.deps import get_current_user
from microstore.data.database import get_db
from microstore.domain.schemas import NotificationOut
from microstore.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[NotificationOut])
def list_notifications(user=Depends(get_current_user), db: Session = Depends(get_db)):
    return NotificationService(db).get_user_notifications(user.id)
