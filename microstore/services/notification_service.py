# microstore/services/notification_service.py
import smtplib
from datetime import datetime, timezone
from decimal import Decimal
from email.message import EmailMessage

from sqlalchemy.orm import Session

from microstore.celery_worker import celery_app
from microstore.data.database import SessionLocal
from microstore.data.models.notification import NotificationModel
from microstore.domain.errors import UserNotFoundError, ValidationError
from microstore.domain.orders import status_message
from microstore.domain.schemas import NotificationRequest
from microstore.repos.notification_repo import NotificationRepo
from microstore.repos.service_status_repo import ServiceStatusRepo
from microstore.repos.user_repo import UserRepo
from microstore.utils import settings
from microstore.utils.logging import get_logger

logger = get_logger(__name__)

SERVICE_NAME = "Notification Service"

ORDER_CONFIRMATION = "order_confirmation"
ORDER_STATUS_UPDATE = "order_status_update"
PAYMENT_CONFIRMATION = "payment_confirmation"
REFUND = "refund"


def _money(amount) -> str:
    return f"${Decimal(str(amount)):.2f}"


class EmailChannel:
    """
    Kanal email. Bez SMTP_HOST tylko loguje wiadomosc (tryb demo),
    z SMTP_HOST wysyla przez smtplib.
    """

    def __init__(
        self,
        enabled: bool | None = None,
        sender: str | None = None,
        default_recipient: str | None = None,
        smtp_host: str | None = None,
    ):
        self.enabled = settings.EMAIL_ENABLED if enabled is None else enabled
        self.sender = sender or settings.EMAIL_FROM
        self.default_recipient = default_recipient or settings.EMAIL_DEFAULT_RECIPIENT
        self.smtp_host = settings.SMTP_HOST if smtp_host is None else smtp_host

    def configure(self, **options) -> None:
        for key, value in options.items():
            if not hasattr(self, key):
                raise ValidationError(f"Unknown email option: {key}")
            setattr(self, key, value)
        logger.info(f"Email configuration updated: enabled={self.enabled} sender={self.sender}")

    def send(self, to: str | None, subject: str, text: str) -> bool:
        if not self.enabled:
            logger.info("Email notifications are disabled")
            return False

        recipient = to or self.default_recipient

        if not self.smtp_host:
            logger.info(f"Would send email to {recipient}: {subject}")
            return True

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(text)

        try:
            with smtplib.SMTP(self.smtp_host, settings.SMTP_PORT, timeout=10) as smtp:
                smtp.starttls()
                if settings.SMTP_USER:
                    smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {recipient}: {e}")
            return False

        logger.info(f"Email sent to {recipient}: {subject}")
        return True


class NotificationService:
    """
    Serwis do wysyłania powiadomień.
    Każde powiadomienie jest zapisywane w bazie ze statusem sent/failed.
    """

    def __init__(self, db: Session, channel: EmailChannel | None = None):
        self.repo = NotificationRepo(db)
        self.users = UserRepo(db)
        self.statuses = ServiceStatusRepo(db)
        self.channel = channel or EmailChannel()

    def send_notification(self, request: NotificationRequest) -> NotificationModel:
        logger.info(
            f"Sending {request.type} notification to user {request.recipient_id}: {request.subject}"
        )
        self.statuses.upsert_status(SERVICE_NAME, "healthy", "Service is operating normally")

        if request.type == "email":
            delivered = self.channel.send(request.recipient_email, request.subject, request.message)
        else:
            # sms/push nie maja kanalu - tylko zapis
            delivered = True

        now = datetime.now(timezone.utc)
        notification = NotificationModel(
            recipient_id=request.recipient_id,
            type=request.type,
            subject=request.subject,
            message=request.message,
            status="sent" if delivered else "failed",
            sent_at=now if delivered else None,
            meta=request.metadata,
            created_at=now,
        )
        return self.repo.create_notification(notification)

    def send_order_confirmation(self, user_id: int, order_id: int, order_details: dict) -> NotificationModel:
        user = self._user(user_id)
        return self.send_notification(
            NotificationRequest(
                recipient_id=user_id,
                recipient_email=user.email,
                subject=f"Order #{order_id} Confirmation",
                message=(
                    f"Your order #{order_id} has been received and is being processed. "
                    "Thank you for your purchase!"
                ),
                metadata={"order_id": order_id, "order_details": order_details},
            )
        )

    def send_order_status_update(self, user_id: int, order_id: int, status: str) -> NotificationModel:
        user = self._user(user_id)
        return self.send_notification(
            NotificationRequest(
                recipient_id=user_id,
                recipient_email=user.email,
                subject=f"Order #{order_id} Status Update: {status}",
                message=status_message(order_id, status),
                metadata={"order_id": order_id, "status": status},
            )
        )

    def send_payment_confirmation(self, user_id: int, order_id: int, amount) -> NotificationModel:
        user = self._user(user_id)
        return self.send_notification(
            NotificationRequest(
                recipient_id=user_id,
                recipient_email=user.email,
                subject=f"Payment Confirmation for Order #{order_id}",
                message=(
                    f"Your payment of {_money(amount)} for order #{order_id} "
                    "has been received and processed successfully."
                ),
                metadata={"order_id": order_id, "amount": str(amount)},
            )
        )

    def send_refund_notification(self, user_id: int, order_id: int, payment_id: int, amount) -> NotificationModel:
        user = self._user(user_id)
        return self.send_notification(
            NotificationRequest(
                recipient_id=user_id,
                recipient_email=user.email,
                subject=f"Refund Processed for Order #{order_id}",
                message=f"Your refund of {_money(amount)} for Order #{order_id} has been processed.",
                metadata={"order_id": order_id, "payment_id": payment_id, "refund_amount": str(amount)},
            )
        )

    def get_user_notifications(self, user_id: int) -> list[NotificationModel]:
        return self.repo.get_by_recipient(user_id)

    def dispatch(self, event: str, user_id: int, order_id: int, payload: dict) -> NotificationModel:
        """Mapuje nazwe zdarzenia na odpowiednia metode send_*."""
        if event == ORDER_CONFIRMATION:
            return self.send_order_confirmation(user_id, order_id, payload.get("order_details", {}))
        if event == ORDER_STATUS_UPDATE:
            return self.send_order_status_update(user_id, order_id, payload["status"])
        if event == PAYMENT_CONFIRMATION:
            return self.send_payment_confirmation(user_id, order_id, payload["amount"])
        if event == REFUND:
            return self.send_refund_notification(user_id, order_id, payload["payment_id"], payload["amount"])
        raise ValidationError(f"Unknown notification event: {event}")

    def _user(self, user_id: int):
        user = self.users.get_user(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user


@celery_app.task(name="microstore.services.notification_service.deliver_notification_task")
def deliver_notification_task(event: str, user_id: int, order_id: int, payload: dict):
    """
    Celery task - wlasna sesja, bo worker dziala poza requestem.
    """
    db = SessionLocal()
    try:
        notification = NotificationService(db).dispatch(event, user_id, order_id, payload)
        logger.info(f"[NOTIFICATION] User {user_id}: {event} for order {order_id} -> {notification.status}")
        return {"id": notification.id, "user_id": user_id, "order_id": order_id, "status": notification.status}
    finally:
        db.close()


class CeleryNotificationPublisher:
    """Publikuje zdarzenie do kolejki, dostarcza worker."""

    def publish(self, event: str, user_id: int, order_id: int, payload: dict) -> None:
        deliver_notification_task.delay(event, user_id, order_id, payload)


class InlineNotificationPublisher:
    """Dostarcza od razu w tym samym procesie (NOTIFICATIONS_ASYNC=false, testy)."""

    def __init__(self, db: Session, channel: EmailChannel | None = None):
        self.db = db
        self.service = NotificationService(db, channel)

    def publish(self, event: str, user_id: int, order_id: int, payload: dict) -> None:
        try:
            self.service.dispatch(event, user_id, order_id, payload)
        except Exception:
            #sesja jest wspolna z requestem, nie zostawiamy jej w stanie bledu
            self.db.rollback()
            raise


def get_publisher(db: Session):
    if settings.NOTIFICATIONS_ASYNC:
        return CeleryNotificationPublisher()
    return InlineNotificationPublisher(db)


def publish_safely(publisher, event: str, user_id: int, order_id: int, payload: dict) -> bool:
    """
    Fire-and-forget: blad powiadomienia nigdy nie cofa operacji biznesowej.
    """
    try:
        publisher.publish(event, user_id, order_id, payload)
        return True
    except Exception as e:
        logger.warning(f"Failed to publish {event} notification for order {order_id}: {e}")
        return False
