import smtplib
from unittest.mock import MagicMock, patch

import pytest

from microstore.data.models import NotificationModel, ServiceStatusModel
from microstore.domain.errors import UserNotFoundError, ValidationError
from microstore.domain.schemas import NotificationRequest
from microstore.services import notification_service
from microstore.services.notification_service import (
    ORDER_STATUS_UPDATE,
    PAYMENT_CONFIRMATION,
    REFUND,
    CeleryNotificationPublisher,
    EmailChannel,
    InlineNotificationPublisher,
    NotificationService,
    deliver_notification_task,
    get_publisher,
    publish_safely,
)


@pytest.fixture()
def service(db, channel):
    return NotificationService(db, channel)


class TestNotificationService:
    def test_email_persisted_as_sent(self, db, service, make_user):
        user = make_user()
        note = service.send_order_status_update(user.id, 7, "shipped")

        assert note.status == "sent"
        assert note.sent_at is not None
        assert note.subject == "Order #7 Status Update: shipped"
        assert "has been shipped" in note.message
        assert note.meta == {"order_id": 7, "status": "shipped"}

    def test_service_status_refreshed(self, db, service, make_user):
        service.send_payment_confirmation(make_user().id, 1, "19.99")
        status = db.query(ServiceStatusModel).filter_by(name="Notification Service").one()
        assert status.status == "healthy"

    def test_payment_message_formats_amount(self, service, make_user):
        note = service.send_payment_confirmation(make_user().id, 3, "5")
        assert "$5.00" in note.message

    def test_disabled_channel_marks_failed(self, db, make_user):
        service = NotificationService(db, EmailChannel(enabled=False, smtp_host=""))
        note = service.send_order_confirmation(make_user().id, 1, {})
        assert note.status == "failed"
        assert note.sent_at is None

    def test_smtp_failure_marks_failed(self, db, make_user):
        channel = EmailChannel(enabled=True, smtp_host="smtp.invalid")
        service = NotificationService(db, channel)
        with patch("smtplib.SMTP", side_effect=smtplib.SMTPConnectError(421, "down")):
            note = service.send_refund_notification(make_user().id, 1, 1, "10.00")
        assert note.status == "failed"

    def test_smtp_delivery(self, db, make_user):
        channel = EmailChannel(enabled=True, sender="shop@test", smtp_host="smtp.test")
        service = NotificationService(db, channel)
        with patch("smtplib.SMTP") as smtp:
            note = service.send_order_confirmation(make_user().id, 1, {"total": "5.00"})

        assert note.status == "sent"
        sent = smtp.return_value.__enter__.return_value.send_message.call_args.args[0]
        assert sent["From"] == "shop@test"

    def test_sms_recorded_as_sent(self, service, make_user):
        note = service.send_notification(
            NotificationRequest(recipient_id=make_user().id, type="sms", subject="Hi", message="Hello")
        )
        assert note.status == "sent"
        assert note.type == "sms"

    def test_unknown_user(self, service):
        with pytest.raises(UserNotFoundError):
            service.send_order_confirmation(999, 1, {})

    def test_user_notifications(self, service, make_user):
        alice, bob = make_user(), make_user()
        service.send_order_status_update(alice.id, 1, "processing")
        service.send_order_status_update(bob.id, 2, "processing")

        assert [n.recipient_id for n in service.get_user_notifications(alice.id)] == [alice.id]

    def test_dispatch_routes_events(self, service, make_user):
        user = make_user()
        assert "Payment Confirmation" in service.dispatch(PAYMENT_CONFIRMATION, user.id, 1, {"amount": "1.00"}).subject
        assert "Refund Processed" in service.dispatch(REFUND, user.id, 1, {"payment_id": 1, "amount": "1.00"}).subject
        assert "Status Update" in service.dispatch(ORDER_STATUS_UPDATE, user.id, 1, {"status": "shipped"}).subject

    def test_dispatch_unknown_event(self, service, make_user):
        with pytest.raises(ValidationError):
            service.dispatch("birthday", make_user().id, 1, {})

    def test_channel_configure(self, channel):
        channel.configure(enabled=False, sender="x@test")
        assert channel.enabled is False
        with pytest.raises(ValidationError):
            channel.configure(colour="blue")


class TestDelivery:
    def test_celery_task_uses_own_session(self, db, session_factory, make_user, monkeypatch):
        user = make_user()
        monkeypatch.setattr(notification_service, "SessionLocal", session_factory)

        result = deliver_notification_task.apply(args=(ORDER_STATUS_UPDATE, user.id, 5, {"status": "delivered"}))

        assert result.successful()
        assert result.get()["status"] == "sent"
        assert db.query(NotificationModel).filter_by(recipient_id=user.id).count() == 1

    def test_celery_publisher_enqueues(self, monkeypatch):
        task = MagicMock()
        monkeypatch.setattr(notification_service, "deliver_notification_task", task)

        CeleryNotificationPublisher().publish(REFUND, 1, 2, {"payment_id": 3, "amount": "1.00"})

        task.delay.assert_called_once_with(REFUND, 1, 2, {"payment_id": 3, "amount": "1.00"})

    def test_inline_publisher_rolls_back_and_raises(self, db, channel):
        publisher = InlineNotificationPublisher(db, channel)
        with pytest.raises(UserNotFoundError):
            publisher.publish(ORDER_STATUS_UPDATE, 999, 1, {"status": "shipped"})

    def test_publish_safely_swallows(self):
        broken = MagicMock()
        broken.publish.side_effect = ConnectionError("redis down")
        assert publish_safely(broken, REFUND, 1, 1, {}) is False

    def test_get_publisher_follows_settings(self, db, monkeypatch):
        monkeypatch.setattr(notification_service.settings, "NOTIFICATIONS_ASYNC", True)
        assert isinstance(get_publisher(db), CeleryNotificationPublisher)
        monkeypatch.setattr(notification_service.settings, "NOTIFICATIONS_ASYNC", False)
        assert isinstance(get_publisher(db), InlineNotificationPublisher)
