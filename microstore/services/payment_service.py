# microstore/services/payment_service.py
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from microstore.data.models.payment import PaymentModel
from microstore.domain.errors import (
    DuplicatePaymentError,
    GatewayNotConfiguredError,
    OrderNotFoundError,
    PaymentNotFoundError,
    RefundNotAllowedError,
    ValidationError,
)
from microstore.domain.orders import TERMINAL_STATUSES, OrderStatus, ensure_transition, format_order_number
from microstore.domain.payments import PaymentStatus, can_transition, generate_transaction_id
from microstore.gateways import MockGateway, StripeGateway
from microstore.repos.payment_repo import PaymentRepo
from microstore.repos.product_repo import ProductRepo
from microstore.services.notification_service import PAYMENT_CONFIRMATION, REFUND, publish_safely
from microstore.utils import settings
from microstore.utils.logging import get_logger

logger = get_logger(__name__)

STRIPE_METHOD = "stripe"


class PaymentService:
    """
    Serwis płatności: jedna płatność na zamówienie, obciążenie przez bramkę,
    zwroty. Zamówienie przesuwa OrderService (tabela przejść).
    """

    def __init__(
        self,
        db: Session,
        order_service,
        publisher,
        stripe_gateway: StripeGateway | None = None,
        mock_gateway: MockGateway | None = None,
    ):
        self.db = db
        self.repo = PaymentRepo(db)
        self.products = ProductRepo(db)
        self.orders = order_service
        self.publisher = publisher
        self.stripe = stripe_gateway
        self.mock = mock_gateway or MockGateway()

    def get_payment(self, payment_id: int) -> PaymentModel | None:
        return self.repo.get_payment(payment_id)

    def get_payment_by_order(self, order_id: int) -> PaymentModel | None:
        return self.repo.get_payment_by_order(order_id)

    def _claim(self, order_id: int, amount, payment_method: str) -> PaymentModel:
        """Pending payment zapisany od razu - unique(order_id) rozstrzyga wyscig."""
        if self.repo.get_payment_by_order(order_id):
            raise DuplicatePaymentError(order_id)

        try:
            return self.repo.create_payment(
                PaymentModel(
                    order_id=order_id,
                    amount=amount,
                    status=PaymentStatus.PENDING.value,
                    payment_method=payment_method,
                    transaction_id=generate_transaction_id(),
                )
            )
        except IntegrityError:
            self.repo.rollback()
            logger.warning(f"Concurrent payment claim for order {order_id} lost the race")
            raise DuplicatePaymentError(order_id) from None

    def _gateway_for(self, payment_method: str):
        if self.stripe is not None and payment_method == STRIPE_METHOD:
            return self.stripe
        return self.mock

    def process_payment(
        self,
        order_id: int,
        amount,
        payment_method: str,
        mock_success: bool = True,
    ) -> PaymentModel:
        """
        Use Case: Płatność za zamówienie.

        1. Zamówienie musi istnieć i nie być w stanie końcowym
        2. Pending payment (insert-if-absent) - commit od razu
        3. Obciążenie przez Stripe albo mock
        4. completed -> zamówienie pending -> processing w tym samym commicie
        5. Powiadomienia po commicie
        """
        order = self.orders.get_order(order_id)
        if not order:
            raise OrderNotFoundError(order_id)

        if OrderStatus(order.status) in TERMINAL_STATUSES:
            raise ValidationError(f"Cannot pay for order {order_id} with status {order.status}")

        amount = Decimal(str(amount))
        if amount <= 0:
            raise ValidationError("Payment amount must be positive")

        payment = self._claim(order_id, amount, payment_method)

        gateway = self._gateway_for(payment_method)
        result = gateway.create_charge(
            amount,
            settings.STRIPE_CURRENCY,
            payment_method,
            {"order_id": str(order_id), "payment_id": str(payment.id)},
            simulate_success=mock_success,
        )
        logger.info(
            f"Payment {payment.id} for order {order_id} via {gateway.name}: {result.status.value}"
        )

        order_advanced = False
        try:
            self.repo.update_payment(
                payment,
                status=result.status.value,
                transaction_id=result.transaction_id or payment.transaction_id,
            )
            if result.status == PaymentStatus.COMPLETED:
                if order.status == OrderStatus.PENDING.value:
                    self.orders.apply_status(order, OrderStatus.PROCESSING)
                    order_advanced = True
                else:
                    logger.info(f"Order {order_id} already {order.status}, status not advanced")
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        if result.status == PaymentStatus.COMPLETED:
            publish_safely(
                self.publisher,
                PAYMENT_CONFIRMATION,
                order.user_id,
                order_id,
                {"amount": str(amount)},
            )
            if order_advanced:
                self.orders.notify_status_change(order, self.publisher)

        return payment

    def process_refund(self, payment_id: int, amount=None) -> PaymentModel:
        """
        Use Case: Zwrot.

        Tylko z completed. Payment -> refunded, zamówienie -> cancelled (jeden commit).
        Kwota płatności nie jest pomniejszana, kwota zwrotu idzie w powiadomieniu.
        """
        payment = self.repo.get_payment(payment_id)
        if not payment:
            raise PaymentNotFoundError(payment_id)

        if not can_transition(payment.status, PaymentStatus.REFUNDED):
            raise RefundNotAllowedError(payment_id, payment.status)

        if amount is not None:
            amount = Decimal(str(amount))
            if amount <= 0:
                raise ValidationError("Refund amount must be positive")
            if amount > payment.amount:
                raise ValidationError(
                    f"Refund amount {amount} exceeds payment amount {payment.amount}"
                )
        refund_amount = amount if amount is not None else payment.amount

        order = self.orders.get_order(payment.order_id)
        if not order:
            raise OrderNotFoundError(payment.order_id)

        cancel_order = order.status != OrderStatus.CANCELLED.value
        if cancel_order:
            #przed bramka - zwrot pieniedzy bez anulowania zamowienia nie moze sie zdarzyc
            ensure_transition(order.status, OrderStatus.CANCELLED)

        if payment.payment_method == STRIPE_METHOD and self.stripe is not None and payment.transaction_id:
            #PaymentGatewayError leci dalej - zwrot, ktorego nie bylo, nie moze zostac zapisany
            refund = self.stripe.create_refund(payment.transaction_id, amount)
            logger.info(f"Stripe refund {refund.refund_id} created for payment {payment_id}")

        try:
            self.repo.update_payment(payment, status=PaymentStatus.REFUNDED.value)
            if cancel_order:
                self.orders.apply_status(order, OrderStatus.CANCELLED)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Payment {payment_id} refunded ({refund_amount}), order {order.id} cancelled")

        publish_safely(
            self.publisher,
            REFUND,
            order.user_id,
            order.id,
            {"payment_id": payment.id, "amount": str(refund_amount)},
        )
        if cancel_order:
            self.orders.notify_status_change(order, self.publisher)

        return payment

    def create_checkout_session(self, order_id: int, success_url: str, cancel_url: str) -> str:
        """
        Use Case: Stripe Checkout.
        Pozycje zamówienia -> line_items, pending payment (stripe) zapisany przed wywołaniem.
        """
        if self.stripe is None:
            raise GatewayNotConfiguredError()

        order = self.orders.get_order(order_id)
        if not order:
            raise OrderNotFoundError(order_id)

        items = self.orders.repo.get_order_items(order_id)
        if not items:
            raise ValidationError(f"No items found for order {order_id}")

        products = self.products.get_products(i.product_id for i in items)
        line_items = []
        for item in items:
            product = products.get(item.product_id)
            if product is None:
                raise ValidationError(f"Product {item.product_id} not found")
            line_items.append(
                {
                    "name": product.name,
                    "description": product.description,
                    "image_url": product.image_url,
                    "unit_price": product.price,
                    "quantity": item.quantity,
                }
            )

        payment = self._claim(order_id, order.total, STRIPE_METHOD)

        try:
            session_id = self.stripe.create_checkout_session(
                line_items,
                success_url,
                cancel_url,
                {"order_id": str(order_id), "order_number": format_order_number(order_id)},
            )
        except Exception:
            self.repo.update_payment(payment, status=PaymentStatus.FAILED.value)
            self.repo.commit()
            raise

        self.repo.update_payment(payment, transaction_id=session_id)
        self.repo.commit()
        logger.info(f"Checkout session {session_id} created for order {order_id}")
        return session_id

    def get_publishable_key(self) -> str | None:
        return settings.STRIPE_PUBLIC_KEY or None
