"""Fabryka bramek platnosci.

Bez STRIPE_SECRET_KEY (sk_...) dziala tylko MockGateway.
"""

from microstore.gateways.mock_gateway import MockGateway
from microstore.gateways.port import ChargeResult, PaymentGateway, RefundResult
from microstore.gateways.stripe_gateway import StripeGateway, is_secret_key
from microstore.utils import settings
from microstore.utils.logging import get_logger

logger = get_logger(__name__)


def build_stripe_gateway(api_key: str | None = None) -> StripeGateway | None:
    key = settings.STRIPE_SECRET_KEY if api_key is None else api_key
    if not is_secret_key(key):
        logger.info("Stripe API key not configured. Payments run in mock mode")
        return None
    return StripeGateway(key, currency=settings.STRIPE_CURRENCY)


__all__ = [
    "ChargeResult",
    "MockGateway",
    "PaymentGateway",
    "RefundResult",
    "StripeGateway",
    "build_stripe_gateway",
]
