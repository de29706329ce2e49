# microstore/gateways/stripe_gateway.py
from decimal import Decimal, ROUND_HALF_UP

import stripe

from microstore.domain.errors import PaymentGatewayError
from microstore.domain.payments import PaymentStatus
from microstore.gateways.port import ChargeResult, PaymentGateway, RefundResult
from microstore.utils.logging import get_logger

logger = get_logger(__name__)

_STATUS_MAP = {
    "succeeded": PaymentStatus.COMPLETED,
    "processing": PaymentStatus.PENDING,
    "requires_payment_method": PaymentStatus.PENDING,
    "requires_confirmation": PaymentStatus.PENDING,
    "requires_action": PaymentStatus.PENDING,
    "requires_capture": PaymentStatus.PENDING,
    "canceled": PaymentStatus.FAILED,
}


def map_stripe_status(stripe_status: str) -> PaymentStatus:
    return _STATUS_MAP.get(stripe_status, PaymentStatus.PENDING)


def to_cents(amount) -> int:
    # Stripe operuje na centach
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def is_secret_key(key: str | None) -> bool:
    return bool(key) and key.startswith("sk_")


class StripeGateway(PaymentGateway):
    """Cienki adapter na stripe-python (PaymentIntent, Refund, Checkout Session)."""

    name = "stripe"

    def __init__(self, api_key: str, currency: str = "usd"):
        if not is_secret_key(api_key):
            raise ValueError("Stripe secret key must start with sk_")
        self.api_key = api_key
        self.currency = currency

    def create_charge(
        self,
        amount: Decimal,
        currency: str,
        payment_method: str,
        metadata: dict[str, str],
        simulate_success: bool = True,
    ) -> ChargeResult:
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_cents(amount),
                currency=currency or self.currency,
                metadata=metadata,
                payment_method_types=["card"],
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            # blad bramki = nieudana platnosc, nie wyjatek dla klienta
            logger.error(f"Stripe payment intent creation failed: {e}")
            return ChargeResult(status=PaymentStatus.FAILED, gateway_status="error", failure_reason=str(e))

        logger.info(f"Stripe payment intent {intent.id} created with status {intent.status}")

        status = map_stripe_status(intent.status)
        if status == PaymentStatus.PENDING:
            #bez webhookow intent nie zostanie potwierdzony - rozstrzyga flaga mockSuccess
            status = PaymentStatus.COMPLETED if simulate_success else PaymentStatus.FAILED
            logger.info(f"Stripe payment intent {intent.id} settled as {status.value}")

        return ChargeResult(
            status=status,
            transaction_id=intent.id,
            gateway_status=intent.status,
        )

    def create_refund(self, transaction_id: str, amount: Decimal | None = None) -> RefundResult:
        params = {"payment_intent": transaction_id, "api_key": self.api_key}
        if amount:
            params["amount"] = to_cents(amount)

        try:
            refund = stripe.Refund.create(**params)
        except stripe.StripeError as e:
            logger.error(f"Stripe refund for {transaction_id} failed: {e}")
            raise PaymentGatewayError(f"Failed to create refund: {e}") from e

        return RefundResult(success=True, refund_id=refund.id)

    def create_checkout_session(
        self,
        line_items: list[dict],
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
    ) -> str:
        try:
            session = stripe.checkout.Session.create(
                mode="payment",
                line_items=[
                    {
                        "price_data": {
                            "currency": self.currency,
                            "product_data": {
                                key: value
                                for key, value in (
                                    ("name", item["name"]),
                                    ("description", item.get("description")),
                                    ("images", [item["image_url"]] if item.get("image_url") else None),
                                )
                                if value
                            },
                            "unit_amount": to_cents(item["unit_price"]),
                        },
                        "quantity": item["quantity"],
                    }
                    for item in line_items
                ],
                success_url=success_url,
                cancel_url=cancel_url,
                metadata=metadata,
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            logger.error(f"Failed to create Stripe checkout session: {e}")
            raise PaymentGatewayError(f"Failed to create checkout session: {e}") from e

        return session.id
